"""Finds which approving delegates hold regions that can be hit."""

import enum
import logging
import time
import typing as t
from typing import Iterable, List, Optional

from quorate.api import NSRequester, nation_region, region_info
from quorate.core import clean_format
from quorate.models import Candidate, RegionInfo, UpdateClass

__all__ = ["HitKind", "classify", "candidate", "sort_candidates", "find_candidates"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Pause between endorsers, on top of the rate limiting done by the requester
COURTESY_DELAY = 1.5


class HitKind(enum.Enum):
    """How a delegate seat can be taken."""

    DIRECT = "direct"
    DELTIP = "deltip"


def classify(info: RegionInfo, maxEndorsements: int) -> Optional[HitKind]:
    """Decides whether a region can be hit with at most maxEndorsements.

    DIRECT if the delegate has fewer endorsements than the maximum,
    DELTIP if endorsing the runner up closes the rest of the gap,
    None otherwise.
    """
    if info.delegateEndos < maxEndorsements:
        return HitKind.DIRECT
    if info.delegateEndos < info.secondEndos + maxEndorsements:
        return HitKind.DELTIP
    return None


def candidate(
    region: str,
    delegate: str,
    info: RegionInfo,
    maxEndorsements: int,
    updateClass: UpdateClass,
) -> Optional[Candidate]:
    """Builds the Candidate for a region, or None if it cannot be hit.
    Password protected regions are never candidates.
    """
    if info.password:
        return None
    kind = classify(info, maxEndorsements)
    if kind is None:
        return None
    return Candidate(
        region=clean_format(region),
        delegate=delegate,
        updateTime=updateClass.timestamp(info),
        secondNation=info.secondNation if kind is HitKind.DELTIP else None,
    )


def sort_candidates(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Sorts by update time; ties keep their original order."""
    return sorted(candidates, key=lambda hit: hit.updateTime)


def find_candidates(
    requester: NSRequester,
    approvals: Iterable[str],
    maxEndorsements: int,
    updateClass: UpdateClass,
    courtesy: float = COURTESY_DELAY,
) -> List[Candidate]:
    """Checks the region of each approving nation and returns the hittable ones,
    sorted by update time.

    Makes two requests per approval: the nation's region, then the region's info.
    A region shared by several approvals is only checked once.
    """
    hittable: t.List[Candidate] = []
    checked: t.Set[str] = set()
    for approval in approvals:
        region = nation_region(requester, approval)
        if clean_format(region) in checked:
            logger.debug("Region %s already checked", region)
            continue
        checked.add(clean_format(region))

        info = region_info(requester, region)
        hit = candidate(region, approval, info, maxEndorsements, updateClass)
        if hit is None:
            logger.debug("Region %s cannot be hit", region)
        elif hit.deltip:
            logger.info(
                "Region %s with delegate %s can be deltipped by nation %s!",
                hit.region,
                approval,
                hit.secondNation,
            )
            hittable.append(hit)
        else:
            logger.info("Region %s with delegate %s can be hit!", hit.region, approval)
            hittable.append(hit)

        time.sleep(courtesy)

    return sort_candidates(hittable)
