"""Rate limited access to the NS API, and the queries built on it."""

from __future__ import annotations

import logging
import time
import typing as t
from typing import Dict, Mapping, Optional, Sequence
from urllib.parse import quote_plus

import requests

from quorate.exceptions import (
    ConfigurationError,
    DecodeError,
    NotFoundError,
    ShapeError,
    TransportError,
)
from quorate.models import (
    NationRegion,
    ProposalList,
    RegionCensus,
    RegionInfo,
    ResponseShape,
)
from quorate.parser import as_xml

__all__ = [
    "API_URL",
    "VERSION",
    "user_agent",
    "NSRequester",
    "API",
    "Nation",
    "Region",
    "WA",
    "proposal_approvals",
    "nation_region",
    "region_info",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

API_URL = "https://www.nationstates.net/cgi-bin/api.cgi"
VERSION = "1.0.4"

# At or below this many remaining requests, each response is followed by a pause
LOW_WATERMARK = 7
# Used when a 429 response does not say how long to wait
DEFAULT_RETRY = 30

Shape = t.TypeVar("Shape", ProposalList, RegionCensus, NationRegion)


def user_agent(nation: str) -> str:
    """Builds the User-Agent identifying the operator's main nation."""
    if not nation or not nation.strip():
        raise ConfigurationError("A main nation is required to build a user agent")
    return quote_plus(
        f"quorate v{VERSION} developed by nation=Notanam, in use by nation={nation.strip()}"
    )


def header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    """Reads an integer header, returning None if missing or malformed."""
    try:
        return int(headers[name])
    except (KeyError, ValueError):
        return None


class NSRequester:
    """Class to manage making requests from the NS API.

    Every request goes through `request`, one at a time,
    pacing itself from the RateLimit headers NS sends back.
    """

    def __init__(self, userAgent: str) -> None:
        self._userAgent = userAgent

    @property
    def userAgent(self) -> str:
        """The User-Agent sent with every request, fixed at construction."""
        return self._userAgent

    @property
    def headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        return {
            "User-Agent": self._userAgent,
            "Content-Type": "application/x-www-form-urlencoded",
        }

    def request(self, parameters: Mapping[str, str], shape: t.Type[Shape]) -> Shape:
        """POSTs the given form parameters to the API and decodes the response
        as the given shape.

        A 429 response is waited out (using Retry-After) and the same request
        is sent again, as many times as needed.
        When RateLimit-Remaining drops to the low watermark, sleeps
        reset / remaining + 1 seconds before returning so the next request
        stays under the limit.
        """
        if not self._userAgent:
            raise ConfigurationError("No user agent set")

        while True:
            logger.debug("Requesting %s with %s", API_URL, dict(parameters))
            try:
                response = requests.post(
                    API_URL, data=dict(parameters), headers=self.headers
                )
            except requests.RequestException as error:
                raise TransportError(f"Request to NS API failed: {error}") from error

            if response.status_code == requests.codes.too_many_requests:
                retry = header_int(response.headers, "Retry-After")
                if retry is None:
                    retry = header_int(response.headers, "RateLimit-Reset")
                if retry is None:
                    retry = DEFAULT_RETRY
                logger.warning("Hit rate limit, trying again in %ss", retry)
                time.sleep(retry)
                continue

            self._slow_down(response.headers)

            if response.status_code != requests.codes.ok:
                raise TransportError(
                    f"Bad status: {response.status_code} {response.reason}",
                    status=response.status_code,
                )

            return decode(response.text, shape)

    @staticmethod
    def _slow_down(headers: Mapping[str, str]) -> None:
        """Sleeps if the remaining request budget is nearly exhausted."""
        remaining = header_int(headers, "RateLimit-Remaining")
        if remaining is None or remaining > LOW_WATERMARK:
            return
        reset = header_int(headers, "RateLimit-Reset") or 0
        delay = (reset // remaining if remaining > 0 else reset) + 1
        logger.info("Getting close to rate limit, slowing down for %ss", delay)
        time.sleep(delay)

    def nation(self, nation: str) -> Nation:
        """Returns a Nation object using this requester"""
        return Nation(self, nation)

    def region(self, region: str) -> Region:
        """Returns a Region object using this requester"""
        return Region(self, region)

    def wa(self, council: str = "1") -> WA:
        """Returns a WA object using this requester"""
        return WA(self, council)


def decode(text: str, shape: ResponseShape) -> t.Any:
    """Parses a response body into the given response model."""
    root = as_xml(text)
    try:
        return shape.from_xml(root)
    except DecodeError:
        raise
    except (KeyError, IndexError, ValueError) as error:
        raise DecodeError(
            f"Response did not match {shape.__name__}: {error}"
        ) from error


class API:
    """Represents a live connection to the API of a NS model"""

    def __init__(self, requester: NSRequester, api: str, name: str) -> None:
        self.requester = requester
        self.api = api
        self.name = name

    def _key(self) -> Dict[str, str]:
        """Determines the first key of the request, encodes the API and name"""
        return {self.api: self.name}

    def shards(
        self, shape: t.Type[Shape], *shards: str, **parameters: str
    ) -> Shape:
        """Requests `<api>=<name>&q=<shards>`, decoding the response as shape.
        Additional parameters can be passed using keyword arguments.
        """
        return self.requester.request(
            {**self._key(), "q": "+".join(shards), **parameters}, shape
        )


class Nation(API):
    """Represents a live connection to the API of a Nation on NS"""

    def __init__(self, requester: NSRequester, name: str) -> None:
        super().__init__(requester, "nation", name)

    def region(self) -> str:
        """Returns the name of the region the nation lives in."""
        return self.shards(NationRegion, "region").region


class Region(API):
    """Represents a live connection to the API of a Region on NS"""

    def __init__(self, requester: NSRequester, name: str) -> None:
        super().__init__(requester, "region", name)

    def census(self) -> RegionCensus:
        """Returns the endorsement ranking (census 66), tags and update times."""
        return self.shards(
            RegionCensus,
            "censusranks",
            "tags",
            "lastmajorupdate",
            "lastminorupdate",
            scale="66",
        )


class WA(API):
    """Represents a live connection the the API of a WA Council on NS.
    Defaults to General Assembly.
    """

    def __init__(self, requester: NSRequester, council: str = "1") -> None:
        super().__init__(requester, "wa", council)

    def proposals(self) -> ProposalList:
        """Returns the proposals currently in the council's queue."""
        return self.shards(ProposalList, "proposals")


def proposal_approvals(requester: NSRequester, proposalId: str) -> Sequence[str]:
    """Returns the nations approving the given proposal.

    Checks the Security Council list first, then the General Assembly.
    Raises NotFoundError if neither lists the proposal.
    """
    for council in ("2", "1"):
        proposal = requester.wa(council).proposals().find(proposalId)
        if proposal is not None:
            logger.info(
                "Found proposal %s in council %s with %d approvals",
                proposalId,
                council,
                len(proposal.approvals),
            )
            return proposal.approvals
    raise NotFoundError(f"Proposal {proposalId} not found")


def nation_region(requester: NSRequester, nation: str) -> str:
    """Returns the region the nation resides in."""
    return requester.nation(nation).region()


def region_info(requester: NSRequester, region: str) -> RegionInfo:
    """Returns the delegate endorsement data and update times of a region.
    Raises ShapeError if NS ranks fewer than two nations.
    """
    census = requester.region(region).census()
    if len(census.ranks) < 2:
        raise ShapeError(
            f"Expected at least two ranked nations in {region}, got {len(census.ranks)}"
        )
    return RegionInfo.from_census(census)
