"""
Standard error codes for service layer.

These error codes allow command handlers to programmatically handle
specific error conditions without parsing error message text.
Repositories use the same codes as the "reason" of a failed outcome.

Usage:
    from services import error_codes
    from services.result import Result

    if wager is None:
        return Result.fail("Wager not found.", code=error_codes.NOT_FOUND)
"""

# General errors
NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
UNAUTHORIZED = "unauthorized"

# Wager creation
INVALID_AMOUNT = "invalid_amount"

# Joining sides
SIDE_TAKEN = "side_taken"
SELF_WAGER = "self_wager"

# Lifecycle state
NOT_PENDING = "not_pending"
NOT_ACTIVE = "not_active"

# Consensus
DUPLICATE_REQUEST = "duplicate_request"
VOTE_CHANGED = "vote_changed"
