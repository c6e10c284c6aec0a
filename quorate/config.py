"""Settings for a planning run."""

import dataclasses
from typing import Optional

from quorate.exceptions import ConfigurationError
from quorate.models import UpdateClass

__all__ = ["Config"]


@dataclasses.dataclass()
class Config:
    """Everything a run needs from the operator.

    redownload is None to redownload the dump only when it is outdated.
    """

    nation: str
    proposal: str
    maxEndorsements: int
    minimumTrigger: int
    updateClass: UpdateClass = UpdateClass.MAJOR
    redownload: Optional[bool] = None
    output: str = "."
    dump: Optional[str] = None

    def validate(self) -> "Config":
        """Raises ConfigurationError for unusable values, returns self otherwise."""
        if not self.nation.strip():
            raise ConfigurationError("Main nation must not be empty")
        if not self.proposal.strip():
            raise ConfigurationError("Proposal ID must not be empty")
        if self.maxEndorsements < 1:
            raise ConfigurationError("Endorsement count must be at least 1")
        if self.minimumTrigger < 1:
            raise ConfigurationError("Minimum trigger time must be at least 1")
        return self
