"""Core ledger and staking bank."""

from .accounting import StakeBook, StakeRecord
from .bank import Bank, BankState
from .errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientStake,
    InvalidAmount,
    NotAManager,
    QuorumNotMet,
    Revert,
    TransferFailed,
    Unauthorized,
)
from .events import Approval, Transfer
from .governance import QUORUM_SIZE, ConfirmationGate, GateState
from .ledger import Ledger, LedgerState
from .rewards import Accrual, RewardAccrual
from .units import ZERO_ADDRESS, format_units, parse_units

__all__ = [
    # Components
    "Ledger",
    "LedgerState",
    "Bank",
    "BankState",
    "StakeBook",
    "StakeRecord",
    "RewardAccrual",
    "Accrual",
    "ConfirmationGate",
    "GateState",
    "QUORUM_SIZE",
    # Events
    "Transfer",
    "Approval",
    # Errors
    "Revert",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Unauthorized",
    "NotAManager",
    "QuorumNotMet",
    "InsufficientStake",
    "TransferFailed",
    "InvalidAmount",
    # Units
    "ZERO_ADDRESS",
    "parse_units",
    "format_units",
]
