"""Command line entrypoint: plans trigger timings for a WA proposal's approvers."""

import argparse
import logging
import sys
import typing as t
from typing import Callable, Optional, Sequence

from quorate.api import NSRequester, proposal_approvals, user_agent
from quorate.config import Config
from quorate.core import enable_logging
from quorate.exceptions import APIError, NotFoundError
from quorate.models import UpdateClass
from quorate.report import write_reports
from quorate.resources import DumpManager
from quorate.targets import find_candidates
from quorate.triggers import TriggerResult, match_triggers

logger = logging.getLogger(__name__)

T = t.TypeVar("T")


def prompt(message: str, convert: Callable[[str], T], valid: Callable[[T], bool]) -> T:
    """Asks with input() until the answer converts and is valid."""
    while True:
        answer = input(message).strip()
        try:
            value = convert(answer)
        except ValueError:
            continue
        if valid(value):
            return value


def parser() -> argparse.ArgumentParser:
    """Builds the command line parser."""
    argParser = argparse.ArgumentParser(
        prog="quorate",
        description="Find hittable regions among a WA proposal's approvals and time triggers.",
    )
    argParser.add_argument("--nation", "--useragent", help="Your main nation.", dest="nation")
    argParser.add_argument("--proposal", help="The proposal ID.")
    argParser.add_argument(
        "--endos", type=int, help="The maximum endorsement count for a target."
    )
    argParser.add_argument(
        "--mintrig", type=int, help="The minimum trigger time, in seconds."
    )
    update = argParser.add_mutually_exclusive_group()
    update.add_argument(
        "--minor",
        action="store_const",
        const=UpdateClass.MINOR,
        dest="updateClass",
        help="Generate times for minor update.",
    )
    update.add_argument(
        "--major",
        action="store_const",
        const=UpdateClass.MAJOR,
        dest="updateClass",
        help="Generate times for major update.",
    )
    argParser.add_argument(
        "--redownload",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Redownload the daily dump even if present (default: only when outdated).",
    )
    argParser.add_argument("--dump", help="Location of the regions dump.", default=None)
    argParser.add_argument(
        "-o", "--output", help="Directory to write reports to.", default="."
    )
    argParser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every request."
    )
    return argParser


def read_config(args: argparse.Namespace) -> Config:
    """Combines command line arguments with prompts for anything missing."""
    nation = args.nation or prompt("Enter your main nation: ", str, bool)
    proposal = args.proposal or prompt(
        "Enter a World Assembly Proposal ID (e.g. proposal_id_12312312): ", str, bool
    )
    endos = args.endos
    if endos is None or endos < 1:
        endos = prompt("Enter the endo count: ", int, lambda value: value >= 1)
    mintrig = args.mintrig
    if mintrig is None or mintrig < 1:
        mintrig = prompt(
            "Enter the minimum trigger time: ", int, lambda value: value >= 1
        )
    updateClass = args.updateClass or prompt(
        "Which update do you want to search for? (minor/major) ",
        lambda answer: UpdateClass(answer.lower()),
        lambda value: True,
    )
    return Config(
        nation=nation,
        proposal=proposal,
        maxEndorsements=endos,
        minimumTrigger=mintrig,
        updateClass=updateClass,
        redownload=args.redownload,
        output=args.output,
        dump=args.dump,
    ).validate()


def run(config: Config) -> TriggerResult:
    """Runs the whole plan: dump, approvals, candidates, triggers, reports."""
    requester = NSRequester(user_agent(config.nation))
    logger.info("User agent set to %s", requester.userAgent)

    dumps = DumpManager(requester.userAgent, config.dump)
    dumps.update(config.redownload)

    logger.info("Getting approvals on proposal %s", config.proposal)
    approvals = proposal_approvals(requester, config.proposal)
    logger.info("%d approvals found, checking which regions can be hit", len(approvals))

    candidates = find_candidates(
        requester, approvals, config.maxEndorsements, config.updateClass
    )
    if not candidates:
        logger.warning("No regions are hittable!")
    else:
        logger.info("Checks done! %d regions are hittable", len(candidates))

    result = match_triggers(
        candidates, dumps.regions(), config.minimumTrigger, config.updateClass
    )
    write_reports(result, config.output)
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entrypoint, returns the exit status."""
    args = parser().parse_args(argv)
    enable_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = read_config(args)
        run(config)
    except NotFoundError as error:
        logger.error("%s", error)
        return 1
    except APIError as error:
        logger.critical("Run aborted: %s", error)
        return 1
    return 0


# Automatically enter main function when run as script
if __name__ == "__main__":
    sys.exit(main())
