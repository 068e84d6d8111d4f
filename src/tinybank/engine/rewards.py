"""Reward accrual: flat per-height rewards since the account's checkpoint.

Formula:
    reward = reward_per_block * (current_height - last_accrual_height)

The reward does not scale with the account's share of total stake. Every
staked account earns the full ``reward_per_block`` per elapsed height.
Rewards are minted fresh by the bank, never drawn from custody.
"""

from dataclasses import dataclass

from .accounting import StakeRecord


@dataclass
class Accrual:
    """Result of running accrual for one account."""
    account: str
    reward: int
    from_height: int
    to_height: int

    @property
    def elapsed(self) -> int:
        return self.to_height - self.from_height


class RewardAccrual:
    """Computes owed reward and advances checkpoints."""

    def compute_reward(self, record: StakeRecord, current_height: int, reward_per_block: int) -> int:
        """
        Reward owed to ``record`` at ``current_height`` without mutating it.

        Only accounts with a positive stake earn anything.

        Raises:
            ValueError: If the height moved backwards past the checkpoint
        """
        if current_height < record.last_accrual_height:
            raise ValueError(
                f"Height went backwards: checkpoint={record.last_accrual_height}, "
                f"current={current_height}"
            )
        if record.staked <= 0:
            return 0
        return reward_per_block * (current_height - record.last_accrual_height)

    def accrue(
        self,
        account: str,
        record: StakeRecord,
        current_height: int,
        reward_per_block: int,
    ) -> Accrual:
        """Compute the owed reward and move the checkpoint to ``current_height``."""
        reward = self.compute_reward(record, current_height, reward_per_block)
        accrual = Accrual(
            account=account,
            reward=reward,
            from_height=record.last_accrual_height,
            to_height=current_height,
        )
        record.last_accrual_height = current_height
        return accrual
