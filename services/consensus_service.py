"""
Two-party consensus for resolving or cancelling an active wager.

Two paths lead to a commit:
- Vote pools: each participant votes A, B or cancel (a new vote replaces
  the old one). The outcome applies once both participants sit in the
  same pool.
- Requests: one participant proposes an outcome through a command and the
  other participant confirms it.

Every vote or confirmation returns a ConsensusStatus so the presentation
layer can announce who voted and who is still pending.
"""

import logging
import time
from dataclasses import dataclass, field

from config import CONSENSUS_REQUEST_TTL_SECONDS
from domain.models.wager import (
    KIND_CANCEL,
    KIND_RESOLVE,
    STATUS_PENDING,
    VALID_SIDES,
    VALID_VOTE_CHOICES,
    VOTE_CANCEL,
    ConsensusRequest,
    Settlement,
    Wager,
)
from domain.models.wager_action import CastVote, Confirm, JoinSide, WagerAction
from repositories.interfaces import IConsensusRepository
from services import error_codes
from services.interfaces import IConsensusService
from services.result import Result
from services.wager_service import WagerService

logger = logging.getLogger("wager_bot.services.consensus")

OUTCOME_RESOLVED = "resolved"
OUTCOME_CANCELLED = "cancelled"


@dataclass
class ProposalResult:
    """
    Result of proposing an outcome.

    A pending wager is cancelled on the spot (committed=True, no request).
    Otherwise a request is opened and waits for the counterpart.
    """

    wager: Wager
    request: ConsensusRequest | None = None
    committed: bool = False


@dataclass
class ConsensusStatus:
    """Status event emitted after every vote or confirmation."""

    wager_id: int
    voter_id: int
    choice: str
    votes: dict[int, str] = field(default_factory=dict)
    pending_from: list[int] = field(default_factory=list)
    committed: bool = False
    outcome: str | None = None
    settlement: Settlement | None = None
    request_id: int | None = None


class ConsensusService(IConsensusService):
    """Coordinates votes and requests, and commits through WagerService."""

    def __init__(
        self,
        wager_service: WagerService,
        consensus_repo: IConsensusRepository,
        request_ttl_seconds: int | None = None,
    ):
        self.wager_service = wager_service
        self.consensus_repo = consensus_repo
        self.request_ttl_seconds = (
            request_ttl_seconds if request_ttl_seconds is not None else CONSENSUS_REQUEST_TTL_SECONDS
        )

    # =========================================================================
    # Request path
    # =========================================================================

    def propose_resolution(self, wager_id: int, user_id: int, winning_side: str) -> Result[ProposalResult]:
        """Open a request to resolve an active wager in favour of winning_side."""
        if winning_side not in VALID_SIDES:
            return Result.fail(f"Invalid side: {winning_side}", code=error_codes.VALIDATION_ERROR)
        return self._open_request(wager_id, user_id, KIND_RESOLVE, winning_side)

    def propose_cancellation(self, wager_id: int, user_id: int) -> Result[ProposalResult]:
        """
        Cancel a wager.

        A pending wager is cancelled immediately (creator or joined user only).
        An active wager gets a cancel request that the counterpart must confirm.
        """
        wager = self.wager_service.get_wager(wager_id)
        if wager is None:
            return Result.fail("Wager not found.", code=error_codes.NOT_FOUND)

        if wager.status == STATUS_PENDING:
            cancelled = self.wager_service.cancel_pending(wager_id, user_id)
            if not cancelled.success:
                return Result.fail(cancelled.error, code=cancelled.error_code)
            return Result.ok(ProposalResult(wager=cancelled.value, committed=True))

        return self._open_request(wager_id, user_id, KIND_CANCEL, None)

    def _open_request(
        self, wager_id: int, user_id: int, kind: str, proposed_winner: str | None
    ) -> Result[ProposalResult]:
        outcome = self.consensus_repo.create_request_atomic(
            wager_id,
            user_id,
            kind,
            proposed_winner,
            int(time.time()),
            self.request_ttl_seconds,
        )
        if not outcome["success"]:
            logger.debug(f"Proposal by {user_id} on wager #{wager_id} rejected: {outcome['reason']}")
            return Result.from_outcome(outcome)

        request = self.get_request(outcome["request_id"])
        return Result.ok(ProposalResult(wager=self.wager_service.get_wager(wager_id), request=request))

    def confirm_request(self, request_id: int, user_id: int) -> Result[ConsensusStatus]:
        """
        Confirm a request. Commits once both participants have confirmed.

        Confirming a request that already committed reports NOT_FOUND.
        """
        outcome = self.consensus_repo.confirm_request_atomic(request_id, user_id, int(time.time()))
        if not outcome["success"]:
            return Result.from_outcome(outcome)

        request = ConsensusRequest.from_row(outcome["request"])
        wager = self.wager_service.get_wager(request.wager_id)
        choice = request.proposed_winner if request.kind == KIND_RESOLVE else VOTE_CANCEL

        confirmed = {}
        if request.side_a_confirmed and wager.side_a.user_id is not None:
            confirmed[wager.side_a.user_id] = choice
        if request.side_b_confirmed and wager.side_b.user_id is not None:
            confirmed[wager.side_b.user_id] = choice
        pending_from = [uid for uid in (wager.side_a.user_id, wager.side_b.user_id) if uid not in confirmed]

        status = ConsensusStatus(
            wager_id=request.wager_id,
            voter_id=user_id,
            choice=choice,
            votes=confirmed,
            pending_from=pending_from,
            request_id=request_id,
        )
        if outcome["both_confirmed"]:
            return self._commit(status)

        logger.info(f"Request #{request_id} on wager #{request.wager_id} confirmed by {user_id}; waiting on {pending_from}")
        return Result.ok(status)

    def get_request(self, request_id: int) -> ConsensusRequest | None:
        row = self.consensus_repo.get_request(request_id)
        return ConsensusRequest.from_row(row) if row else None

    def get_request_by_message_id(self, message_id: int) -> ConsensusRequest | None:
        row = self.consensus_repo.get_request_by_message_id(message_id)
        return ConsensusRequest.from_row(row) if row else None

    def get_active_request(self, wager_id: int) -> ConsensusRequest | None:
        """The unexpired request for a wager; expired requests count as absent."""
        row = self.consensus_repo.get_active_request(wager_id, int(time.time()))
        return ConsensusRequest.from_row(row) if row else None

    def attach_request_message(self, request_id: int, channel_id: int | None, message_id: int) -> None:
        self.consensus_repo.update_request_message(request_id, channel_id, message_id)

    def purge_expired_requests(self) -> int:
        """Garbage-collect expired requests. Correctness never depends on this."""
        return self.consensus_repo.purge_expired_requests(int(time.time()))

    # =========================================================================
    # Vote path
    # =========================================================================

    def cast_vote(self, wager_id: int, user_id: int, choice: str) -> Result[ConsensusStatus]:
        """
        Vote for side A, side B, or cancel.

        A vote by someone who is not a participant is rejected and never
        stored.
        """
        if choice not in VALID_VOTE_CHOICES:
            return Result.fail(f"Invalid vote: {choice}", code=error_codes.VALIDATION_ERROR)

        outcome = self.consensus_repo.cast_vote_atomic(wager_id, user_id, choice, int(time.time()))
        if not outcome["success"]:
            logger.debug(f"Vote by {user_id} on wager #{wager_id} rejected: {outcome['reason']}")
            return Result.from_outcome(outcome)

        votes = outcome["votes"]
        participants = (outcome["side_a_user_id"], outcome["side_b_user_id"])
        pending_from = [uid for uid in participants if votes.get(uid) != choice]
        status = ConsensusStatus(
            wager_id=wager_id,
            voter_id=user_id,
            choice=choice,
            votes=votes,
            pending_from=pending_from,
        )
        if not pending_from:
            committed = self._commit(status, require_votes=True)
            if committed.success or committed.error_code != error_codes.VOTE_CHANGED:
                return committed
            # The other participant changed their vote before the commit took the lock
            status.votes = self.consensus_repo.get_votes(wager_id)
            status.pending_from = [uid for uid in participants if status.votes.get(uid) != choice]
            logger.info(f"Wager #{wager_id}: commit on {choice} abandoned, votes changed to {status.votes}")
            return Result.ok(status)

        logger.info(f"Wager #{wager_id}: {user_id} voted {choice}; waiting on {pending_from}")
        return Result.ok(status)

    def _commit(self, status: ConsensusStatus, require_votes: bool = False) -> Result[ConsensusStatus]:
        """
        Apply the agreed outcome.

        A concurrent commit that got there first leaves the wager non-active,
        so this one fails with NOT_ACTIVE and changes nothing. With
        require_votes the stored votes are checked again in the committing
        transaction, and a changed vote fails with VOTE_CHANGED.
        """
        if status.choice == VOTE_CANCEL:
            cancelled = self.wager_service.cancel_active(status.wager_id, require_votes=require_votes)
            if not cancelled.success:
                return Result.fail(cancelled.error, code=cancelled.error_code)
            status.outcome = OUTCOME_CANCELLED
        else:
            resolved = self.wager_service.resolve(status.wager_id, status.choice, require_votes=require_votes)
            if not resolved.success:
                return Result.fail(resolved.error, code=resolved.error_code)
            status.outcome = OUTCOME_RESOLVED
            status.settlement = resolved.value

        status.committed = True
        status.pending_from = []
        logger.info(f"Wager #{status.wager_id} {status.outcome} by consensus ({status.choice})")
        return Result.ok(status)

    def dispatch(self, action: WagerAction, user_id: int, display_name: str | None = None) -> Result:
        """
        Execute an explicit action resolved by the presentation layer.

        Returns the JoinResult or ConsensusStatus result of the underlying call.
        """
        if isinstance(action, JoinSide):
            return self.wager_service.join_side(action.wager_id, user_id, action.side, display_name=display_name)
        if isinstance(action, CastVote):
            return self.cast_vote(action.wager_id, user_id, action.choice)
        if isinstance(action, Confirm):
            return self.confirm_request(action.request_id, user_id)
        raise TypeError(f"Unsupported wager action: {action!r}")
