"""
Explicit wager actions.

The presentation layer turns a button press, reaction or command into one
of these before calling the core, so the core never has to guess what an
emoji means.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class JoinSide:
    """Take an open side of a pending wager."""

    wager_id: int
    side: str


@dataclass(frozen=True)
class CastVote:
    """Vote on the outcome of an active wager: 'A', 'B' or 'cancel'."""

    wager_id: int
    choice: str


@dataclass(frozen=True)
class Confirm:
    """Confirm an outstanding consensus request."""

    request_id: int


WagerAction = JoinSide | CastVote | Confirm
