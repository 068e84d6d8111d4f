"""Sanity checks over live ledger and bank state."""

from dataclasses import dataclass
from typing import List, Optional

from ..engine.bank import Bank
from ..engine.ledger import Ledger


class SystemInvariantError(ValueError):
    """Raised by ``assert_invariants`` when any error-level check fails."""


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "conservation", "custody", "governance"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run invariant checks on a ledger and (optionally) the bank built on it."""

    def __init__(self, ledger: Ledger, bank: Optional[Bank] = None):
        """Initialize with the components to inspect."""
        self.ledger = ledger
        self.bank = bank

    def check_ledger(self) -> List[ValidationWarning]:
        """
        Check ledger conservation and sign invariants.

        Returns:
            List of validation warnings
        """
        warnings = []
        state = self.ledger.state

        balance_sum = sum(state.balances.values())
        if balance_sum != state.total_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"Balances don't sum to total supply: {balance_sum} vs {state.total_supply}",
                details=f"Difference: {balance_sum - state.total_supply:+d}"
            ))

        negative = [account for account, amount in state.balances.items() if amount < 0]
        if negative:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Negative balance for {len(negative)} account(s)",
                details=", ".join(negative)
            ))

        negative_allowances = [
            f"{owner}->{spender}"
            for owner, spenders in state.allowances.items()
            for spender, amount in spenders.items()
            if amount < 0
        ]
        if negative_allowances:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Negative allowance for {len(negative_allowances)} pair(s)",
                details=", ".join(negative_allowances)
            ))

        return warnings

    def check_bank(self) -> List[ValidationWarning]:
        """
        Check stake aggregate, custody, governance and wiring invariants.

        Returns:
            List of validation warnings
        """
        if self.bank is None:
            return []

        warnings = []
        bank = self.bank

        is_valid, error_msg = bank.state.book.validate_totals()
        if not is_valid:
            warnings.append(ValidationWarning(
                severity="error",
                category="accounting",
                message="Stake records inconsistent with total staked",
                details=error_msg
            ))

        custody = self.ledger.balance_of(bank.address)
        if custody < bank.total_staked:
            warnings.append(ValidationWarning(
                severity="error",
                category="custody",
                message=f"Bank holds {custody} but owes {bank.total_staked} in principal",
                details=f"Shortfall: {bank.total_staked - custody}"
            ))

        strangers = bank.gate.confirmations - set(bank.managers)
        if strangers:
            warnings.append(ValidationWarning(
                severity="error",
                category="governance",
                message="Confirmation set contains non-managers",
                details=", ".join(sorted(strangers))
            ))

        if self.ledger.manager != bank.address:
            warnings.append(ValidationWarning(
                severity="warning",
                category="wiring",
                message="Bank does not hold the ledger manager role; rewards cannot be minted",
                details=f"Ledger manager: {self.ledger.manager}"
            ))

        return warnings

    def run_all_checks(self) -> List[ValidationWarning]:
        """Run all checks."""
        return self.check_ledger() + self.check_bank()


def validate_system(ledger: Ledger, bank: Optional[Bank] = None) -> List[ValidationWarning]:
    """Convenience wrapper around ``SanityChecker.run_all_checks``."""
    return SanityChecker(ledger, bank).run_all_checks()


def assert_invariants(ledger: Ledger, bank: Optional[Bank] = None) -> None:
    """
    Raises:
        SystemInvariantError: If any error-level check fails
    """
    errors = [w for w in validate_system(ledger, bank) if w.severity == "error"]
    if errors:
        raise SystemInvariantError("; ".join(f"[{w.category}] {w.message}" for w in errors))
