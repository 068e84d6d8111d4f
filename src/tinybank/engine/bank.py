"""Staking bank: custodies ledger balance, pays flat per-height rewards, and
gates reward-rate changes behind a unanimous manager quorum.

Custody Identity:
    ledger.balance_of(bank) >= total_staked

Rewards are minted through the ledger's privileged-mint hook, so the bank
must hold the ledger's manager role before any reward can be paid.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple

from .accounting import StakeBook
from .contract import Contract, atomic
from .errors import InsufficientStake, Revert, TransferFailed, Unauthorized
from .governance import ConfirmationGate
from .ledger import Ledger
from .rewards import Accrual, RewardAccrual
from .units import require_amount

logger = logging.getLogger(__name__)


@dataclass
class BankState:
    """Bank state, created at deployment."""
    owner: str
    reward_per_block: int
    gate: ConfirmationGate
    book: StakeBook = field(default_factory=StakeBook)


class Bank(Contract):
    """Stake custody, reward accrual and the confirmation-gated rate setter."""

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        managers: Sequence[str],
        *,
        address: str,
        deployer: str,
        clock: Callable[[], int],
        reward_per_block: Optional[int] = None,
    ):
        """
        Deploy the bank.

        Args:
            ledger: Ledger whose balance is staked and minted as reward
            owner: Address allowed to change the reward rate
            managers: Exactly five distinct confirming managers
            address: Address of this bank
            deployer: Deploying account
            clock: Returns the current logical height
            reward_per_block: Initial rate in base units (default: one whole token)
        """
        super().__init__(address, deployer)
        if reward_per_block is None:
            reward_per_block = 10 ** ledger.decimals
        require_amount(reward_per_block)

        self.ledger = ledger
        self.clock = clock
        self.accrual = RewardAccrual()
        self.state = BankState(
            owner=owner,
            reward_per_block=reward_per_block,
            gate=ConfirmationGate.from_managers(managers),
        )
        logger.debug("Deployed bank at %s over ledger %s", address, ledger.address)

    # Views

    @property
    def owner(self) -> str:
        return self.state.owner

    @property
    def reward_per_block(self) -> int:
        return self.state.reward_per_block

    @property
    def total_staked(self) -> int:
        return self.state.book.total_staked

    @property
    def managers(self) -> Tuple[str, ...]:
        return self.state.gate.managers

    @property
    def gate(self) -> ConfirmationGate:
        return self.state.gate

    def staked(self, account: str) -> int:
        return self.state.book.staked(account)

    def last_accrual_height(self, account: str) -> int:
        record = self.state.book.records.get(account)
        return record.last_accrual_height if record else 0

    def pending_reward(self, account: str) -> int:
        """Reward the account would receive if accrual ran now."""
        record = self.state.book.records.get(account)
        if record is None:
            return 0
        return self.accrual.compute_reward(record, self.clock(), self.state.reward_per_block)

    # Stake flows

    def stake(self, caller: str, amount: int) -> None:
        """
        Pull ``amount`` from caller into custody and record it.

        Pending reward is accrued first. Caller must have approved the bank
        for at least ``amount`` on the ledger.

        Raises:
            TransferFailed: If the ledger rejects the custody pull
        """
        require_amount(amount)
        with atomic([self, self.ledger]):
            self._accrue(caller)
            try:
                self.ledger.transfer_from(self.address, caller, self.address, amount)
            except Revert as exc:
                raise TransferFailed() from exc
            self.state.book.deposit(caller, amount)
        logger.debug("%s staked %d (total %d)", caller, amount, self.total_staked)

    def withdraw(self, caller: str, amount: int) -> None:
        """
        Pay pending reward, then return ``amount`` of principal to caller.

        Raises:
            InsufficientStake: If ``amount`` exceeds caller's stake
            TransferFailed: If the ledger rejects the principal transfer
        """
        require_amount(amount)
        with atomic([self, self.ledger]):
            if amount > self.state.book.staked(caller):
                raise InsufficientStake()
            self._accrue(caller)
            self.state.book.release(caller, amount)
            try:
                self.ledger.transfer(self.address, amount, caller)
            except Revert as exc:
                raise TransferFailed() from exc
        logger.debug("%s withdrew %d (total %d)", caller, amount, self.total_staked)

    def _accrue(self, account: str) -> Accrual:
        record = self.state.book.record(account)
        accrual = self.accrual.accrue(account, record, self.clock(), self.state.reward_per_block)
        if accrual.reward > 0:
            self.ledger.mint(self.address, account, accrual.reward)
            logger.debug(
                "Accrued %d to %s over %d height(s)", accrual.reward, account, accrual.elapsed
            )
        return accrual

    # Governance

    def confirm(self, caller: str) -> None:
        """
        Raises:
            NotAManager: If caller is not one of the five managers
        """
        self.state.gate.confirm(caller)
        logger.debug(
            "Manager %s confirmed (%d/%d)",
            caller, self.state.gate.confirmed_count, len(self.state.gate.managers),
        )

    def set_reward_per_block(self, caller: str, new_rate: int) -> None:
        """
        Change the reward rate. Owner-only, and only with every manager's
        confirmation; confirmations are cleared on success.

        Raises:
            Unauthorized: If caller is not the owner
            QuorumNotMet: If not all managers have confirmed
        """
        if caller != self.state.owner:
            raise Unauthorized()
        self.state.gate.require_quorum()
        require_amount(new_rate)

        self.state.reward_per_block = new_rate
        self.state.gate.reset()
        logger.info("Reward per block set to %d", new_rate)
