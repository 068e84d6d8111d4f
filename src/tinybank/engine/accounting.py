"""Stake accounting: per-account staked principal and the bank-wide aggregate.

Invariant:
    total_staked == sum(record.staked for record in records)

Records are created zero-valued on first touch and never removed; a zero
stake just means the account is dormant.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .errors import InsufficientStake
from .units import require_amount


@dataclass
class StakeRecord:
    """Stake held by one account."""
    staked: int = 0
    last_accrual_height: int = 0  # Checkpoint: height of the last reward accrual


@dataclass
class StakeBook:
    """All stake records plus the total-staked aggregate."""
    records: Dict[str, StakeRecord] = field(default_factory=dict)
    total_staked: int = 0

    def record(self, account: str) -> StakeRecord:
        """Return the account's record, creating an empty one if needed."""
        if account not in self.records:
            self.records[account] = StakeRecord()
        return self.records[account]

    def staked(self, account: str) -> int:
        record = self.records.get(account)
        return record.staked if record else 0

    def deposit(self, account: str, amount: int) -> StakeRecord:
        """Increase the account's stake and the aggregate by ``amount``."""
        require_amount(amount)
        record = self.record(account)
        record.staked += amount
        self.total_staked += amount
        return record

    def release(self, account: str, amount: int) -> StakeRecord:
        """
        Decrease the account's stake and the aggregate by ``amount``.

        Raises:
            InsufficientStake: If ``amount`` exceeds the recorded stake
        """
        require_amount(amount)
        record = self.records.get(account)
        if record is None or record.staked < amount:
            raise InsufficientStake()
        record.staked -= amount
        self.total_staked -= amount
        return record

    def validate_totals(self) -> tuple[bool, Optional[str]]:
        """
        Check the aggregate against the per-account records.

        Returns:
            (is_valid, error_message)
        """
        computed = sum(record.staked for record in self.records.values())
        if computed != self.total_staked:
            return False, (
                f"Stake aggregate mismatch: total_staked={self.total_staked}, "
                f"sum(staked)={computed}, diff={self.total_staked - computed}"
            )
        negative = [account for account, record in self.records.items() if record.staked < 0]
        if negative:
            return False, f"Negative stake for {', '.join(negative)}"
        return True, None
