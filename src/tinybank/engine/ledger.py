"""Token ledger: balance/allowance registry with a single privileged minter.

Conservation Identity:
    total_supply = sum(balances)

Every mutator takes the calling address first and validates everything
before touching state, so a rejected call never leaves a partial write.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .contract import Contract
from .errors import (
    MINT_UNAUTHORIZED,
    InsufficientAllowance,
    InsufficientBalance,
    Unauthorized,
)
from .events import Approval, Transfer
from .units import ZERO_ADDRESS, require_amount

logger = logging.getLogger(__name__)


@dataclass
class LedgerState:
    """Ledger state, created at deployment."""
    name: str
    symbol: str
    decimals: int
    owner: str
    total_supply: int = 0
    manager: Optional[str] = None  # Only address allowed to mint
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)  # owner -> spender -> amount


class Ledger(Contract):
    """Fungible-balance registry.

    Note the argument order of ``transfer`` is (amount, to); external callers
    depend on it.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_mint_amount: int,
        *,
        address: str,
        deployer: str,
    ):
        """
        Deploy the ledger and credit the initial supply to the deployer.

        Args:
            name: Token name
            symbol: Token symbol
            decimals: Number of decimals used to scale amounts
            initial_mint_amount: Whole tokens minted to the deployer
                (scaled by 10^decimals)
            address: Address of this ledger
            deployer: Deploying account, which becomes the owner
        """
        super().__init__(address, deployer)
        require_amount(decimals)
        require_amount(initial_mint_amount)
        self.state = LedgerState(name=name, symbol=symbol, decimals=decimals, owner=deployer)
        self._credit(deployer, initial_mint_amount * 10 ** decimals)
        self.events.append(Transfer(ZERO_ADDRESS, deployer, self.state.total_supply))
        logger.debug("Deployed ledger %s (%s) at %s", name, symbol, address)

    # Views

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def symbol(self) -> str:
        return self.state.symbol

    @property
    def decimals(self) -> int:
        return self.state.decimals

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    @property
    def owner(self) -> str:
        return self.state.owner

    @property
    def manager(self) -> Optional[str]:
        return self.state.manager

    def balance_of(self, account: str) -> int:
        return self.state.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.state.allowances.get(owner, {}).get(spender, 0)

    # Governance hook

    def set_manager(self, caller: str, manager: str) -> None:
        """
        Assign the minting role. Owner-only, and only once.

        Raises:
            Unauthorized: If caller is not the owner or a manager is already set
        """
        if caller != self.state.owner:
            raise Unauthorized()
        if self.state.manager is not None:
            raise Unauthorized("manager already set")
        self.state.manager = manager
        logger.debug("Ledger %s manager set to %s", self.address, manager)

    # Mutators

    def mint(self, caller: str, to: str, amount: int) -> None:
        """
        Create ``amount`` new units for ``to``. Manager-only.

        Raises:
            Unauthorized: If caller is not the manager
        """
        require_amount(amount)
        if self.state.manager is None or caller != self.state.manager:
            raise Unauthorized(MINT_UNAUTHORIZED)
        self._credit(to, amount)
        self.events.append(Transfer(ZERO_ADDRESS, to, amount))
        logger.debug("Minted %d to %s", amount, to)

    def transfer(self, caller: str, amount: int, to: str) -> bool:
        """
        Move ``amount`` from caller to ``to``.

        Raises:
            InsufficientBalance: If caller holds less than ``amount``
        """
        require_amount(amount)
        self._move(caller, to, amount)
        return True

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        """Set (not add to) the allowance of ``spender`` over caller's balance."""
        require_amount(amount)
        self.state.allowances.setdefault(caller, {})[spender] = amount
        self.events.append(Approval(spender, amount))
        logger.debug("%s approved %s for %d", caller, spender, amount)
        return True

    def transfer_from(self, caller: str, sender: str, to: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``to`` using caller's allowance.

        Allowance is checked before balance.

        Raises:
            InsufficientAllowance: If the allowance is below ``amount``
            InsufficientBalance: If ``sender`` holds less than ``amount``
        """
        require_amount(amount)
        allowed = self.allowance(sender, caller)
        if allowed < amount:
            raise InsufficientAllowance()
        if self.balance_of(sender) < amount:
            raise InsufficientBalance()

        self.state.allowances.setdefault(sender, {})[caller] = allowed - amount
        self._move(sender, to, amount)
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        balances = self.state.balances
        if balances.get(sender, 0) < amount:
            raise InsufficientBalance()
        balances[sender] = balances.get(sender, 0) - amount
        balances[to] = balances.get(to, 0) + amount
        self.events.append(Transfer(sender, to, amount))
        logger.debug("Transfer %d %s -> %s", amount, sender, to)

    def _credit(self, to: str, amount: int) -> None:
        self.state.balances[to] = self.state.balances.get(to, 0) + amount
        self.state.total_supply += amount
