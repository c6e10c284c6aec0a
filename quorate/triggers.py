"""Matches hittable regions to earlier updating trigger regions.

Walks the regions dump once. Every update timestamp seen so far is indexed
to the first region that updated at it, so when a candidate region comes up
its trigger is the closest indexed timestamp at least minimumTrigger seconds
earlier. If nothing that early exists, the first region of the update is used.
"""

import dataclasses
import logging
import typing as t
from typing import Dict, Iterable, List, Mapping, Tuple

from quorate.core import clean_format
from quorate.exceptions import ConfigurationError, ResourceError
from quorate.models import Candidate, RegionDump, UpdateClass

__all__ = ["TriggerResult", "find_trigger", "match_triggers"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclasses.dataclass()
class TriggerResult:
    """Outcome of a matching pass.

    candidates keeps the order it was given in;
    missing holds the candidates whose region was not in the dump.
    """

    firstRegion: str
    firstTime: int
    candidates: List[Candidate]
    missing: List[Candidate]

    @property
    def matched(self) -> List[Candidate]:
        """Candidates that were assigned a trigger."""
        return [hit for hit in self.candidates if hit.matched]


def find_trigger(
    index: Mapping[int, str],
    timestamp: int,
    minimumTrigger: int,
    first: Tuple[str, int],
) -> Tuple[str, int]:
    """Returns the (region, timestamp) to use as trigger for an update at timestamp.

    Searches back one second at a time from timestamp - minimumTrigger,
    falling back to first once the search passes the first update.
    """
    firstRegion, firstTime = first
    probe = timestamp - minimumTrigger
    while probe > firstTime:
        if probe in index:
            return index[probe], probe
        probe -= 1
    return firstRegion, firstTime


def match_triggers(
    candidates: Iterable[Candidate],
    records: Iterable[RegionDump],
    minimumTrigger: int,
    updateClass: UpdateClass,
) -> TriggerResult:
    """Assigns a trigger to each candidate, in place.

    The update time of each matched candidate is replaced with the dump's,
    since API times may be older than the dump.
    Candidates are matched by region name, so one that is absent from the dump
    is reported in the result's missing list and leaves the others unaffected.
    """
    if minimumTrigger < 1:
        raise ConfigurationError("Minimum trigger time must be at least 1 second")

    ordered = list(candidates)
    pending: Dict[str, List[Candidate]] = {}
    for hit in ordered:
        pending.setdefault(clean_format(hit.region), []).append(hit)

    index: Dict[int, str] = {}
    first: t.Optional[Tuple[str, int]] = None

    logger.info("Getting triggers for %d regions", len(ordered))
    for record in records:
        name = clean_format(record.name)
        timestamp = updateClass.timestamp(record)
        if first is None:
            first = (name, timestamp)
        # First region seen at a timestamp keeps it
        index.setdefault(timestamp, name)

        for hit in pending.pop(name, ()):
            hit.updateTime = timestamp
            hit.triggerRegion, hit.triggerTime = find_trigger(
                index, timestamp, minimumTrigger, first
            )
            logger.debug(
                "Region %s triggered by %s (%ss)",
                hit.region,
                hit.triggerRegion,
                timestamp - hit.triggerTime,
            )

        if not pending:
            break

    if first is None:
        raise ResourceError("Regions dump contains no regions")

    missing = [hit for hit in ordered if not hit.matched]
    for hit in missing:
        logger.warning("Region %s was not found in the regions dump", hit.region)

    return TriggerResult(
        firstRegion=first[0], firstTime=first[1], candidates=ordered, missing=missing
    )
