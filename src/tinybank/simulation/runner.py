"""Simulation runner - Deploy the ledger and bank, then replay a scripted scenario.

Key Features:
- Deployment and manager-role wiring identical to the production setup
- One transaction per block under automine (rewards count blocks, not steps)
- Invariant checks after every transaction
- Expected reverts recorded with their literal reasons
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.schema import Config, Step
from ..engine.bank import Bank
from ..engine.errors import Revert
from ..engine.ledger import Ledger
from ..engine.units import parse_units
from ..validation.sanity_checks import validate_system
from .chain import Chain, Receipt

logger = logging.getLogger(__name__)


class ScenarioError(ValueError):
    """A step did not behave as the scenario declared."""


@dataclass
class StateSnapshot:
    """Observable state after one executed step."""
    step: int
    action: str
    height: int
    balances: Dict[str, int]  # Keyed by account label ("account_0", ..., "bank")
    total_supply: int
    total_staked: int
    bank_custody: int
    reward_per_block: int
    confirmations: int
    reverted: Optional[str] = None  # Revert reason for expected failures


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    snapshots: List[StateSnapshot]
    receipts: List[Receipt]
    final_metrics: Dict[str, Any]
    failures: List[Dict[str, Any]] = field(default_factory=list)
    conservation_errors: List[str] = field(default_factory=list)


class SimulationRunner:
    """Deploys a ledger + bank pair on a fresh chain and drives it."""

    def __init__(self, config: Config):
        """
        Initialize simulation runner.

        Args:
            config: Simulation configuration
        """
        self.config = config
        self._conservation_errors: List[str] = []

        self.chain = Chain(
            account_count=config.chain.account_count,
            seed=config.chain.seed,
            automine=config.chain.automine,
        )
        accounts = self.chain.accounts
        self.deployer = accounts[0]
        decimals = config.ledger.decimals

        self.ledger: Ledger = self.chain.deploy(
            self.deployer,
            Ledger,
            config.ledger.name,
            config.ledger.symbol,
            decimals,
            config.ledger.initial_mint,
        )
        self.initial_supply = self.ledger.total_supply

        self.bank: Bank = self.chain.deploy(
            self.deployer,
            Bank,
            self.ledger,
            accounts[config.bank.owner],
            [accounts[i] for i in config.bank.managers],
            clock=self.chain.block_height,
            reward_per_block=parse_units(config.bank.reward_per_block, decimals),
        )
        # The bank can only mint rewards once it holds the ledger's manager role
        self.chain.send(self.deployer, self.ledger, "set_manager", self.bank.address)

        self.labels: Dict[str, str] = {addr: f"account_{i}" for i, addr in enumerate(accounts)}
        self.labels[self.bank.address] = "bank"

    def resolve(self, target) -> str:
        """Map a config target (account index or "bank") to an address."""
        if target == "bank":
            return self.bank.address
        return self.chain.accounts[target]

    def run(self) -> SimulationResult:
        """
        Replay every scenario step.

        Returns:
            SimulationResult with per-step snapshots

        Raises:
            Revert: If a step reverts without declaring ``expect_revert``
            ScenarioError: If a step expected to revert succeeds or
                reverts with a different reason
        """
        snapshots: List[StateSnapshot] = []
        failures: List[Dict[str, Any]] = []

        for index, step in enumerate(self.config.scenario.steps):
            for _ in range(step.repeat):
                reverted = None
                try:
                    self._execute(step)
                except Revert as exc:
                    if step.expect_revert is None:
                        raise
                    if exc.reason != step.expect_revert:
                        raise ScenarioError(
                            f"Step {index} ({step.action}) reverted with '{exc.reason}', "
                            f"expected '{step.expect_revert}'"
                        ) from exc
                    reverted = exc.reason
                    failures.append({'step': index, 'action': step.action, 'reason': exc.reason})
                else:
                    if step.expect_revert is not None:
                        raise ScenarioError(
                            f"Step {index} ({step.action}) succeeded, "
                            f"expected revert '{step.expect_revert}'"
                        )

                self._check_invariants(index)
                snapshots.append(self._snapshot(index, step.action, reverted))

        return SimulationResult(
            config=self.config,
            snapshots=snapshots,
            receipts=list(self.chain.receipts),
            final_metrics=self._final_metrics(),
            failures=failures,
            conservation_errors=list(self._conservation_errors),
        )

    def _execute(self, step: Step) -> Optional[Receipt]:
        if step.action == "mine":
            self.chain.mine(step.blocks)
            return None

        sender = self.chain.accounts[step.actor]
        amount = None
        if step.amount is not None:
            amount = parse_units(step.amount, self.ledger.decimals)

        if step.action == "approve":
            return self.chain.send(sender, self.ledger, "approve", self.resolve(step.to), amount)
        if step.action == "transfer":
            return self.chain.send(sender, self.ledger, "transfer", amount, self.resolve(step.to))
        if step.action == "transfer_from":
            return self.chain.send(
                sender, self.ledger, "transfer_from",
                self.resolve(step.source), self.resolve(step.to), amount,
            )
        if step.action == "confirm":
            return self.chain.send(sender, self.bank, "confirm")
        # stake, withdraw, set_reward_per_block
        return self.chain.send(sender, self.bank, step.action, amount)

    def _check_invariants(self, index: int) -> None:
        for warning in validate_system(self.ledger, self.bank):
            if warning.severity == "error":
                message = f"step {index}: [{warning.category}] {warning.message}"
                logger.warning("Invariant violation at %s", message)
                self._conservation_errors.append(message)

    def _snapshot(self, index: int, action: str, reverted: Optional[str]) -> StateSnapshot:
        return StateSnapshot(
            step=index,
            action=action,
            height=self.chain.height,
            balances={label: self.ledger.balance_of(addr) for addr, label in self.labels.items()},
            total_supply=self.ledger.total_supply,
            total_staked=self.bank.total_staked,
            bank_custody=self.ledger.balance_of(self.bank.address),
            reward_per_block=self.bank.reward_per_block,
            confirmations=self.bank.gate.confirmed_count,
            reverted=reverted,
        )

    def _final_metrics(self) -> Dict[str, Any]:
        return {
            'final_height': self.chain.height,
            'final_total_supply': self.ledger.total_supply,
            'final_total_staked': self.bank.total_staked,
            'final_bank_custody': self.ledger.balance_of(self.bank.address),
            'final_reward_per_block': self.bank.reward_per_block,
            'rewards_minted': self.ledger.total_supply - self.initial_supply,
            'final_balances': {
                label: self.ledger.balance_of(addr) for addr, label in self.labels.items()
            },
        }
