"""Writes the trigger list and raid file for a matching pass."""

import logging
import os
from typing import List

from quorate.triggers import TriggerResult

__all__ = ["duration_string", "trigger_list", "raid_file", "write_reports"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

TRIGGER_FILE = "trigger_list.txt"
RAID_FILE = "raidFile.txt"


def duration_string(seconds: int) -> str:
    """Formats a number of seconds like 1h2m3s, dropping leading zero units."""
    sign = "-" if seconds < 0 else ""
    hours, rest = divmod(abs(seconds), 3600)
    minutes, remainder = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{remainder}s"
    if minutes:
        return f"{sign}{minutes}m{remainder}s"
    return f"{sign}{remainder}s"


def trigger_list(result: TriggerResult) -> str:
    """One trigger region per line, in candidate order."""
    return "".join(f"{hit.triggerRegion}\n" for hit in result.matched)


def raid_file(result: TriggerResult) -> str:
    """Human readable list of targets.

    Each target links its region with the time since the first region updated,
    the runner up to endorse for deltips, and its trigger with the lead time.
    """
    lines: List[str] = []
    for step, hit in enumerate(result.matched):
        sinceFirst = duration_string(hit.updateTime - result.firstTime)
        lead = duration_string(hit.updateTime - (hit.triggerTime or 0))
        lines.append(
            f"{step+1}) https://www.nationstates.net/region={hit.region} ({sinceFirst})\n"
        )
        if hit.deltip:
            lines.append(
                f"ENDORSE: https://www.nationstates.net/nation={hit.secondNation}\n"
            )
        lines.append(
            "\ta) https://www.nationstates.net/template-overall=none/"
            f"region={hit.triggerRegion} ({lead})\n\n"
        )
    return "".join(lines)


def write_reports(result: TriggerResult, directory: str = ".") -> None:
    """Writes trigger_list.txt and raidFile.txt into the directory."""
    os.makedirs(directory, exist_ok=True)
    for name, text in ((TRIGGER_FILE, trigger_list(result)), (RAID_FILE, raid_file(result))):
        path = os.path.join(directory, name)
        with open(path, "w", encoding="utf-8") as file:
            file.write(text)
        logger.info("Wrote %s", path)
