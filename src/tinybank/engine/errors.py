"""Revert taxonomy for ledger and bank operations.

Every failure aborts the whole operation and leaves state untouched. The
``reason`` strings are part of the external contract: callers match on them
verbatim, so they must not be reworded (including the misspelled allowance
reason).
"""

from typing import Optional


class Revert(Exception):
    """A rejected operation with a literal, caller-visible reason."""

    reason: str = "reverted"

    def __init__(self, reason: Optional[str] = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class InsufficientBalance(Revert):
    reason = "insufficient balance"


class InsufficientAllowance(Revert):
    reason = "insufficient allownce"


class Unauthorized(Revert):
    reason = "You are not authorized"


class NotAManager(Revert):
    reason = "You are not one of managers"


class QuorumNotMet(Revert):
    reason = "Not all managers confirmed yet"


class InsufficientStake(Revert):
    reason = "insufficient staked amount"


class TransferFailed(Revert):
    reason = "token transfer failed"


class InvalidAmount(Revert):
    reason = "amount must be a non-negative integer"


# Reason used when the ledger rejects a mint from anyone but its manager
MINT_UNAUTHORIZED = "You are not authorized to manage this token"
