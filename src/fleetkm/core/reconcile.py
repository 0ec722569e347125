"""Import reconciliation policy.

Decides, per year, whether an incoming backup may overwrite stored data.
The policy is pure: prompting the operator is the caller's job.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from fleetkm.models.settings import DEFAULT_TOLERANCE_MS


class DecisionType(str, Enum):
    """Outcome of the stale-data check."""

    ACCEPT = "accept"
    REJECT = "reject"
    NEEDS_CONFIRMATION = "needs_confirmation"


class StaleImportWarning(BaseModel):
    """Incoming data is older than what is stored for the year."""

    year: Optional[int] = None
    incoming_timestamp: int
    local_timestamp: int

    @property
    def message(self) -> str:
        year = f" for {self.year}" if self.year is not None else ""
        return (
            f"The backup{year} is OLDER than the last save.\n"
            f"File:    {format_timestamp(self.incoming_timestamp)}\n"
            f"Current: {format_timestamp(self.local_timestamp)}\n"
            "Overwriting will lose the recent changes."
        )


class Decision(BaseModel):
    """Policy result; ``warning`` is set when confirmation is needed."""

    action: DecisionType
    warning: Optional[StaleImportWarning] = None

    @property
    def needs_confirmation(self) -> bool:
        return self.action == DecisionType.NEEDS_CONFIRMATION


class ImportReport(BaseModel):
    """What an import did, year by year."""

    accepted: list[int] = Field(default_factory=list)
    rejected: list[int] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    company_name: Optional[str] = None
    current_year_updated: bool = False


def format_timestamp(timestamp: int) -> str:
    """Render epoch ms as dd/mm/yyyy hh:mm local time."""
    if timestamp == 0:
        return "No data"
    return datetime.fromtimestamp(timestamp / 1000).strftime("%d/%m/%Y %H:%M")


def decide(
    incoming: int,
    last_updated: int,
    tolerance_ms: int = DEFAULT_TOLERANCE_MS,
    year: Optional[int] = None,
) -> Decision:
    """Compare an incoming timestamp with the stored one for a year.

    Policy:
    - Nothing stored locally (``last_updated == 0``): accept.
    - Incoming older than local by more than ``tolerance_ms``: needs confirmation.
    - Otherwise: accept.
    """
    if last_updated == 0:
        return Decision(action=DecisionType.ACCEPT)

    if incoming < last_updated - tolerance_ms:
        return Decision(
            action=DecisionType.NEEDS_CONFIRMATION,
            warning=StaleImportWarning(
                year=year,
                incoming_timestamp=incoming,
                local_timestamp=last_updated,
            ),
        )

    return Decision(action=DecisionType.ACCEPT)


def resolve(decision: Decision, confirmed: bool) -> DecisionType:
    """Apply the operator's answer to a decision needing confirmation."""
    if not decision.needs_confirmation:
        return decision.action
    return DecisionType.ACCEPT if confirmed else DecisionType.REJECT
