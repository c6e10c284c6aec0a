"""Retrieval and parsing of the daily regions data dump."""

# Standard modules
import dataclasses
import datetime
import logging
import typing as t
from typing import BinaryIO, Iterator, Mapping, Optional

# File management
import gzip
import os
import shutil
import tempfile

# Tech libraries
import xml.etree.ElementTree as etree
import requests
import urllib3

from quorate.exceptions import ResourceError, TransportError
from quorate.models import RegionDump

__all__ = [
    "download_file",
    "last_generation",
    "DailyResource",
    "DumpManager",
    "parse_regions",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def download_file(url: str, fileName: str, *, headers: Mapping[str, str]) -> None:
    """Downloads a file from <url> to the location specified by <fileName>.

    The body is written to a temporary file beside fileName, which only
    replaces fileName once the whole body has arrived.
    """
    logger.info("Starting download of <%s> to <%s>", url, fileName)
    handle, partial = tempfile.mkstemp(
        prefix=".download-", dir=os.path.dirname(os.path.abspath(fileName))
    )
    try:
        with os.fdopen(handle, "wb") as f:
            with requests.get(url, stream=True, headers=headers) as r:
                if r.status_code != requests.codes.ok:
                    raise TransportError(
                        f"Bad status downloading {url}: {r.status_code} {r.reason}",
                        status=r.status_code,
                    )
                # Undo transfer encoding so the file on disk is the plain .gz
                r.raw.decode_content = True
                shutil.copyfileobj(r.raw, f)
        os.replace(partial, fileName)
    except (requests.RequestException, urllib3.exceptions.HTTPError, OSError) as error:
        os.remove(partial)
        raise TransportError(f"Download of {url} failed: {error}") from error
    except BaseException:
        os.remove(partial)
        raise
    logger.info("Finished download of <%s> to <%s>", url, fileName)


def last_generation(
    generationTime: datetime.time, current: Optional[datetime.datetime] = None
) -> datetime.datetime:
    """Returns the most recent (naive UTC) datetime at the given time of day.
    current defaults to utc now.
    """
    if current is None:
        current = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    latest = datetime.datetime.combine(current.date(), generationTime)
    if latest > current:
        latest -= datetime.timedelta(days=1)
    return latest


@dataclasses.dataclass()
class DailyResource:
    """Describes a retrievable resource that updates daily at a certain time."""

    source: str
    name: str
    updateTime: datetime.time = datetime.time()

    def outdated(
        self, previous: datetime.datetime, current: Optional[datetime.datetime] = None
    ) -> bool:
        """Determines whether the Resource is outdated.

        The Resource is considered outdated if previous (when it was retrieved)
        is before the latest updateTime at or before current.

        current defaults to (naive) utc now.
        """
        return previous < last_generation(self.updateTime, current)


class DumpManager:
    """Manages downloading and reading the regions data dump."""

    # A datadump is generated ~2230 PST, so it is considered available at 0600 UTC
    generationTime = datetime.time(hour=6)

    regionsDump = DailyResource(
        "https://www.nationstates.net/pages/regions.xml.gz",
        "regions.xml.gz",
        generationTime,
    )

    def __init__(self, userAgent: str, location: Optional[str] = None) -> None:
        """The dump is stored at location, defaulting to `regions.xml.gz` in the cwd."""
        self.headers = {"User-Agent": userAgent}
        self.location = location or self.regionsDump.name

    def exists(self) -> bool:
        """Whether a copy of the dump is already on disk."""
        return os.path.isfile(self.location)

    def download(self) -> None:
        """Downloads the dump, replacing any existing copy."""
        download_file(self.regionsDump.source, self.location, headers=self.headers)

    def update(self, redownload: Optional[bool] = None) -> None:
        """Makes sure a copy of the dump exists.

        A missing dump is always downloaded.
        If redownload is True or False, an existing dump is redownloaded or kept.
        If redownload is None, an existing dump is redownloaded only if it was
        retrieved before the most recent generation time.
        """
        if not self.exists():
            logger.info("Dump does not exist, downloading.")
            self.download()
        elif redownload is None:
            modified = datetime.datetime.fromtimestamp(
                os.path.getmtime(self.location), datetime.timezone.utc
            ).replace(tzinfo=None)
            if self.regionsDump.outdated(modified):
                logger.info("Dump is outdated, redownloading.")
                self.download()
            else:
                logger.info("Dump is current, reusing <%s>", self.location)
        elif redownload:
            logger.info("Redownloading dump as requested.")
            self.download()
        else:
            logger.info("Reusing existing dump <%s>", self.location)

    def regions(self) -> Iterator[RegionDump]:
        """Iteratively parses each region in the dump, in update order.
        Raises ResourceError if the file cannot be read or decompressed.
        """
        opener: t.Callable[..., BinaryIO]
        if self.location.endswith(".gz"):
            opener = gzip.open
        else:
            opener = open
        try:
            with opener(self.location, "rb") as dump:
                yield from parse_regions(dump)
        # Truncated gzip raises EOFError, a non-gzip file BadGzipFile (an OSError)
        except (EOFError, OSError) as error:
            raise ResourceError(
                f"Could not read regions dump <{self.location}>: {error}"
            ) from error


def parse_regions(stream: BinaryIO) -> Iterator[RegionDump]:
    """Iteratively parses REGION records from a byte stream of the regions dump,
    without storing the entirety in memory simultaneously.
    Records are yielded in the order of the dump, which is the update order.
    """
    logger.info("Iteratively parsing regions dump")
    try:
        # Looking for start events allows us to retrieve
        # the root element with the first `next()` call.
        iterator = etree.iterparse(stream, events=("start", "end"))
        _, root = next(iterator)
        for event, element in iterator:
            if event == "end" and element.tag == "REGION":
                yield RegionDump.from_xml(element)
                # Drop parsed regions from the tree
                root.clear()
    except StopIteration as error:
        raise ResourceError("Regions dump is empty") from error
    except etree.ParseError as error:
        raise ResourceError(f"Regions dump is malformed: {error}") from error
