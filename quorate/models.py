"""Models of object structures returned from the NationStates API and dumps."""

from __future__ import annotations

import dataclasses
import enum
import typing as t
from typing import Optional, Sequence

import xml.etree.ElementTree as etree

from quorate.parser import NodeParse, content, sequence

__all__ = [
    "UpdateClass",
    "Proposal",
    "ProposalList",
    "CensusRank",
    "RegionCensus",
    "NationRegion",
    "RegionInfo",
    "RegionDump",
    "Candidate",
    "ResponseShape",
]

# Tag NS puts on regions that require a password to enter
PASSWORD_TAG = "Password"


class UpdateClass(enum.Enum):
    """Which of the two daily updates times are computed against."""

    MINOR = "minor"
    MAJOR = "major"

    def timestamp(self, record: t.Union[RegionCensus, RegionInfo, RegionDump]) -> int:
        """Selects the matching update timestamp of a region record."""
        return record.lastMinor if self is UpdateClass.MINOR else record.lastMajor


@dataclasses.dataclass(frozen=True)
class Proposal:
    """A WA proposal and the delegates approving it."""

    id: str
    approvals: Sequence[str]

    @classmethod
    def from_xml(cls, node: etree.Element) -> Proposal:
        """Parses a PROPOSAL node, as returned by
        https://www.nationstates.net/cgi-bin/api.cgi?wa=1&q=proposals
        APPROVALS is a colon delimited list of nations.
        """
        data = NodeParse(node)
        approvals = data.simple("APPROVALS") if data.has_name("APPROVALS") else ""
        return cls(
            id=node.attrib.get("id", ""),
            approvals=approvals.split(":") if approvals else [],
        )


@dataclasses.dataclass(frozen=True)
class ProposalList:
    """The proposals currently listed in one council."""

    proposals: Sequence[Proposal]

    @classmethod
    def from_xml(cls, node: etree.Element) -> ProposalList:
        """Parses the WA root node of a proposals response.
        A council with no proposals may omit the PROPOSALS node.
        """
        data = NodeParse(node)
        return cls(
            proposals=[
                Proposal.from_xml(proposal)
                for proposals in data.from_name("PROPOSALS")
                for proposal in proposals
                if proposal.tag == "PROPOSAL"
            ]
        )

    def find(self, proposalId: str) -> Optional[Proposal]:
        """Returns the proposal with the given id, or None."""
        for proposal in self.proposals:
            if proposal.id == proposalId:
                return proposal
        return None


@dataclasses.dataclass(frozen=True)
class CensusRank:
    """One entry of a regional census ranking."""

    name: str
    score: int

    @classmethod
    def from_xml(cls, node: etree.Element) -> CensusRank:
        """Parses a NATION node inside CENSUSRANKS/NATIONS"""
        data = NodeParse(node)
        return cls(name=data.simple("NAME"), score=data.integer("SCORE"))


@dataclasses.dataclass(frozen=True)
class RegionCensus:
    """Raw response of the region shards
    censusranks+tags+lastmajorupdate+lastminorupdate.
    """

    ranks: Sequence[CensusRank]
    tags: Sequence[str]
    lastMinor: int
    lastMajor: int

    @classmethod
    def from_xml(cls, node: etree.Element) -> RegionCensus:
        """Parses the REGION root node.
        (See https://www.nationstates.net/cgi-bin/api.cgi?region=testregionia&q=censusranks+tags+lastmajorupdate+lastminorupdate&scale=66)
        """  # noqa pylint: disable=line-too-long
        data = NodeParse(node)
        ranks = [
            CensusRank.from_xml(nation)
            for census in data.from_name("CENSUSRANKS")
            for nations in NodeParse(census).from_name("NATIONS")
            for nation in nations
        ]
        return cls(
            ranks=ranks,
            tags=[
                tag
                for tags in data.from_name("TAGS")
                for tag in sequence(tags, key=content)
            ],
            lastMinor=data.integer("LASTMINORUPDATE", default=0),
            lastMajor=data.integer("LASTMAJORUPDATE", default=0),
        )


@dataclasses.dataclass(frozen=True)
class NationRegion:
    """Response of the nation region shard."""

    region: str

    @classmethod
    def from_xml(cls, node: etree.Element) -> NationRegion:
        """Parses the NATION root node of a q=region response."""
        return cls(region=NodeParse(node).simple("REGION"))


# Closed set of response variants the request executor knows how to decode
ResponseShape = t.Union[t.Type[ProposalList], t.Type[RegionCensus], t.Type[NationRegion]]


@dataclasses.dataclass(frozen=True)
class RegionInfo:
    """Summary of a region's delegate seat and update times.

    delegateEndos is the endorsement count of the first ranked nation,
    secondEndos and secondNation describe the runner up.
    """

    delegateEndos: int
    secondEndos: int
    secondNation: str
    password: bool
    lastMinor: int
    lastMajor: int

    @classmethod
    def from_census(cls, census: RegionCensus) -> RegionInfo:
        """Summarizes a census response that has at least two ranks."""
        first, second = census.ranks[0], census.ranks[1]
        return cls(
            delegateEndos=first.score,
            secondEndos=second.score,
            secondNation=second.name,
            password=PASSWORD_TAG in census.tags,
            lastMinor=census.lastMinor,
            lastMajor=census.lastMajor,
        )


@dataclasses.dataclass(frozen=True)
class RegionDump:
    """One region of the daily regions dump.
    Only the fields needed for timing are kept.
    """

    name: str
    lastMinor: int
    lastMajor: int

    @classmethod
    def from_xml(cls, node: etree.Element) -> RegionDump:
        """Parses a REGION node from https://www.nationstates.net/pages/regions.xml.gz"""
        data = NodeParse(node)
        return cls(
            name=data.simple("NAME"),
            lastMinor=data.integer("LASTMINORUPDATE", default=0),
            lastMajor=data.integer("LASTMAJORUPDATE", default=0),
        )


@dataclasses.dataclass()
class Candidate:
    """A region that can be hit, and the timing data found for it.

    region is in clean format, delegate is the approving nation.
    secondNation is only set when the runner up must be endorsed first (a deltip).
    updateTime starts as the API timestamp and is replaced by the dump timestamp
    once a trigger is matched.
    """

    region: str
    delegate: str
    updateTime: int
    secondNation: Optional[str] = None
    triggerRegion: Optional[str] = None
    triggerTime: Optional[int] = None

    @property
    def deltip(self) -> bool:
        """Whether the hit needs an extra endorsement on the runner up."""
        return self.secondNation is not None

    @property
    def matched(self) -> bool:
        """Whether a trigger has been assigned."""
        return self.triggerRegion is not None
