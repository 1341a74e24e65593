"""Data models for the loan blueprint."""

from __future__ import annotations

from enum import Enum
from typing import Literal, TypedDict

from guildhall.errors import InvalidTransitionError


class LoanStatus(str, Enum):
    """Lifecycle states of a loan."""

    WAITING_APPROVAL = "waitingApproval"
    ACTIVE = "active"
    RETURNED = "returned"
    COMPLETED = "completed"
    REJECTED = "rejected"


TRANSITIONS: dict[LoanStatus, frozenset[LoanStatus]] = {
    LoanStatus.WAITING_APPROVAL: frozenset({LoanStatus.ACTIVE, LoanStatus.REJECTED}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.RETURNED}),
    # A lender may report that the repayment never arrived
    LoanStatus.RETURNED: frozenset({LoanStatus.COMPLETED, LoanStatus.ACTIVE}),
    LoanStatus.COMPLETED: frozenset(),
    LoanStatus.REJECTED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Return True when a loan may move from current to target."""
    try:
        return LoanStatus(target) in TRANSITIONS[LoanStatus(current)]
    except ValueError:
        return False


def check_transition(current: str, target: str) -> LoanStatus:
    """Validate a transition and return the target status."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return LoanStatus(target)


class LoanSource(TypedDict, total=False):
    """Where the gold comes from."""

    type: Literal["guild", "merchant"]
    guild: str
    merchantId: str
    tradeId: str


class Borrower(TypedDict):
    """Who borrows the gold."""

    uid: str
    discordId: str
    name: str


class Loan(TypedDict, total=False):
    """A loan document in guildLoans or merchantLoans."""

    loanId: str
    amount: int
    source: LoanSource
    borrower: Borrower
    status: str
    dueDate: int | None
    createdAt: int
    updatedAt: int
    approvedBy: str
    approvedAt: int
    returnedAt: int
    completedAt: int
