"""
Tests for ConsensusRepository: vote pools and confirmation requests.
"""

import pytest

from services import error_codes
from tests.conftest import ALICE_ID, BOB_ID, CREATOR_ID, OUTSIDER_ID

NOW = 1_700_000_000
TTL = 3600


@pytest.fixture
def wager_id(active_wager):
    return active_wager.wager_id


@pytest.fixture
def pending_wager_id(create_wager):
    return create_wager().wager_id


class TestVotes:
    def test_vote_is_stored(self, consensus_repository, wager_id):
        result = consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "A", NOW)

        assert result["success"] is True
        assert result["votes"] == {ALICE_ID: "A"}
        assert result["side_a_user_id"] == ALICE_ID
        assert result["side_b_user_id"] == BOB_ID

    def test_revote_replaces_previous_choice(self, consensus_repository, wager_id):
        consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "A", NOW)
        result = consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "cancel", NOW + 1)

        assert result["votes"] == {ALICE_ID: "cancel"}
        assert consensus_repository.get_votes(wager_id) == {ALICE_ID: "cancel"}

    def test_outsider_vote_is_rejected_and_not_stored(self, consensus_repository, wager_id):
        result = consensus_repository.cast_vote_atomic(wager_id, OUTSIDER_ID, "A", NOW)

        assert result["reason"] == error_codes.UNAUTHORIZED
        assert consensus_repository.get_votes(wager_id) == {}

    def test_creator_without_side_cannot_vote(self, consensus_repository, wager_id):
        result = consensus_repository.cast_vote_atomic(wager_id, CREATOR_ID, "B", NOW)
        assert result["reason"] == error_codes.UNAUTHORIZED

    def test_vote_on_pending_wager(self, consensus_repository, pending_wager_id):
        result = consensus_repository.cast_vote_atomic(pending_wager_id, ALICE_ID, "A", NOW)
        assert result["reason"] == error_codes.NOT_ACTIVE

    def test_vote_on_missing_wager(self, consensus_repository):
        assert consensus_repository.cast_vote_atomic(404, ALICE_ID, "A", NOW)["reason"] == error_codes.NOT_FOUND

    def test_invalid_choice_raises(self, consensus_repository, wager_id):
        with pytest.raises(ValueError):
            consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "draw", NOW)


class TestRequests:
    def test_create_preconfirms_proposer_side(self, consensus_repository, wager_id):
        result = consensus_repository.create_request_atomic(wager_id, BOB_ID, "resolve", "B", NOW, TTL)

        request = consensus_repository.get_request(result["request_id"])
        assert request["kind"] == "resolve"
        assert request["proposed_winner"] == "B"
        assert request["side_a_confirmed"] == 0
        assert request["side_b_confirmed"] == 1
        assert request["expires_at"] == NOW + TTL

    def test_cancel_request_drops_proposed_winner(self, consensus_repository, wager_id):
        result = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "cancel", "A", NOW, TTL)
        assert consensus_repository.get_request(result["request_id"])["proposed_winner"] is None

    def test_duplicate_request_rejected(self, consensus_repository, wager_id):
        consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        result = consensus_repository.create_request_atomic(wager_id, BOB_ID, "cancel", None, NOW + 10, TTL)

        assert result["reason"] == error_codes.DUPLICATE_REQUEST

    def test_expired_request_does_not_block_new_one(self, consensus_repository, wager_id):
        first = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        second = consensus_repository.create_request_atomic(wager_id, BOB_ID, "resolve", "B", NOW + TTL, TTL)

        assert second["success"] is True
        assert consensus_repository.get_request(first["request_id"]) is None

    def test_outsider_cannot_propose(self, consensus_repository, wager_id):
        result = consensus_repository.create_request_atomic(wager_id, OUTSIDER_ID, "cancel", None, NOW, TTL)
        assert result["reason"] == error_codes.UNAUTHORIZED

    def test_request_on_pending_wager(self, consensus_repository, pending_wager_id):
        result = consensus_repository.create_request_atomic(pending_wager_id, ALICE_ID, "cancel", None, NOW, TTL)
        assert result["reason"] == error_codes.NOT_ACTIVE

    def test_invalid_kind_and_winner_raise(self, consensus_repository, wager_id):
        with pytest.raises(ValueError):
            consensus_repository.create_request_atomic(wager_id, ALICE_ID, "settle", None, NOW, TTL)
        with pytest.raises(ValueError):
            consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", None, NOW, TTL)

    def test_active_request_ignores_expired(self, consensus_repository, wager_id):
        consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        assert consensus_repository.get_active_request(wager_id, NOW + TTL - 1) is not None
        assert consensus_repository.get_active_request(wager_id, NOW + TTL) is None

    def test_message_lookup(self, consensus_repository, wager_id):
        created = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)
        consensus_repository.update_request_message(created["request_id"], 10, 999)

        row = consensus_repository.get_request_by_message_id(999)
        assert row["request_id"] == created["request_id"]
        assert row["channel_id"] == 10


class TestConfirm:
    def test_counterpart_confirmation_completes_request(self, consensus_repository, wager_id):
        created = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        result = consensus_repository.confirm_request_atomic(created["request_id"], BOB_ID, NOW + 5)

        assert result["success"] is True
        assert result["both_confirmed"] is True
        assert result["request"]["side_b_confirmed"] == 1

    def test_proposer_reconfirming_is_not_enough(self, consensus_repository, wager_id):
        created = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        result = consensus_repository.confirm_request_atomic(created["request_id"], ALICE_ID, NOW + 5)

        assert result["success"] is True
        assert result["both_confirmed"] is False

    def test_outsider_confirmation_rejected(self, consensus_repository, wager_id):
        created = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "cancel", None, NOW, TTL)

        result = consensus_repository.confirm_request_atomic(created["request_id"], OUTSIDER_ID, NOW)

        assert result["reason"] == error_codes.UNAUTHORIZED
        assert consensus_repository.get_request(created["request_id"])["side_b_confirmed"] == 0

    def test_expired_request_is_not_found(self, consensus_repository, wager_id):
        created = consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, TTL)

        result = consensus_repository.confirm_request_atomic(created["request_id"], BOB_ID, NOW + TTL)

        assert result["reason"] == error_codes.NOT_FOUND

    def test_missing_request_is_not_found(self, consensus_repository):
        assert consensus_repository.confirm_request_atomic(404, BOB_ID, NOW)["reason"] == error_codes.NOT_FOUND


class TestPurge:
    def test_purge_removes_only_expired(self, consensus_repository, wager_id, create_wager, wager_service):
        consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, 10)

        other = create_wager()
        wager_service.join_side(other.wager_id, ALICE_ID, "A")
        wager_service.join_side(other.wager_id, BOB_ID, "B")
        kept = consensus_repository.create_request_atomic(other.wager_id, BOB_ID, "cancel", None, NOW, TTL)

        assert consensus_repository.purge_expired_requests(NOW + 10) == 1
        assert consensus_repository.get_active_request(wager_id, NOW) is None
        assert consensus_repository.get_request(kept["request_id"]) is not None

    def test_purge_with_nothing_expired(self, consensus_repository):
        assert consensus_repository.purge_expired_requests(NOW) == 0
