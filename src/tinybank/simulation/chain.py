"""Execution environment: logical height, accounts, and atomic transactions.

Each transaction executes against the pending block at ``height + 1``. With
automine on, every successful transaction mines its own block, so a
sequence stake -> 5 transfers -> withdraw spans six heights between the
stake checkpoint and the withdrawal.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from ..engine.contract import Contract, atomic
from ..engine.errors import Revert
from ..engine.events import Event

logger = logging.getLogger(__name__)


def derive_address(*parts: Any) -> str:
    """Deterministic 20-byte hex address from arbitrary seed parts."""
    digest = hashlib.sha256(":".join(str(p) for p in parts).encode()).hexdigest()
    return "0x" + digest[:40]


@dataclass
class Receipt:
    """Outcome of one successful transaction."""
    height: int
    sender: str
    contract: str
    method: str
    args: tuple
    events: List[Event] = field(default_factory=list)


class Chain:
    """Single-threaded host that serializes calls into blocks."""

    def __init__(self, account_count: int = 10, seed: str = "tinybank", automine: bool = True):
        """
        Initialize chain.

        Args:
            account_count: Number of externally owned accounts to generate
            seed: Seed for deterministic account addresses
            automine: Mine one block per successful transaction
        """
        if account_count <= 0:
            raise ValueError("account_count must be positive")
        self.seed = seed
        self.automine = automine
        self.height = 0
        self.accounts: List[str] = [derive_address(seed, "account", i) for i in range(account_count)]
        self.contracts: Dict[str, Contract] = {}
        self.receipts: List[Receipt] = []
        self._nonces: Dict[str, int] = {}

    def block_height(self) -> int:
        """Height of the block currently being built."""
        return self.height + 1

    def mine(self, blocks: int = 1) -> int:
        """Advance the chain by ``blocks`` empty (or pending) blocks."""
        if blocks < 0:
            raise ValueError("Cannot mine a negative number of blocks")
        self.height += blocks
        logger.debug("Mined %d block(s), height now %d", blocks, self.height)
        return self.height

    def deploy(self, sender: str, factory: Callable[..., Contract], *args, **kwargs) -> Contract:
        """
        Construct a contract at a fresh address derived from sender and nonce.

        Deployment is itself a transaction: it mines a block under automine.
        """
        nonce = self._nonces.get(sender, 0)
        address = derive_address(self.seed, "contract", sender, nonce)
        contract = factory(*args, address=address, deployer=sender, **kwargs)
        self._nonces[sender] = nonce + 1
        self.contracts[address] = contract
        self.receipts.append(Receipt(
            height=self.block_height(),
            sender=sender,
            contract=address,
            method="<deploy>",
            args=args,
            events=list(contract.events),
        ))
        if self.automine:
            self.mine()
        logger.info("Deployed %s at %s", type(contract).__name__, address)
        return contract

    def send(self, sender: str, contract: Contract, method: str, *args) -> Receipt:
        """
        Execute ``contract.method(sender, *args)`` all-or-nothing.

        On ``Revert`` every hosted contract is restored and the error is
        re-raised; the height does not move.

        Returns:
            Receipt with the events emitted by the call
        """
        hosted = list(self.contracts.values())
        marks = {c.address: len(c.events) for c in hosted}
        try:
            with atomic(hosted):
                getattr(contract, method)(sender, *args)
        except Revert as exc:
            logger.info("Reverted %s.%s from %s: %s", type(contract).__name__, method, sender, exc.reason)
            raise

        emitted: List[Event] = []
        for c in hosted:
            emitted.extend(c.events[marks[c.address]:])
        receipt = Receipt(
            height=self.block_height(),
            sender=sender,
            contract=contract.address,
            method=method,
            args=args,
            events=emitted,
        )
        self.receipts.append(receipt)
        if self.automine:
            self.mine()
        return receipt
