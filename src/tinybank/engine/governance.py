"""Governance gate: unanimous confirmation by a fixed quorum of five managers.

Cycle:
    EMPTY -> PARTIAL (1-4 confirmed) -> FULL (all 5) -> mutation -> EMPTY

Confirmations are a set, so a manager confirming twice counts once. A
protected mutation passes only when the confirmation set equals the whole
manager set.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Set, Tuple

from .errors import NotAManager, QuorumNotMet

QUORUM_SIZE = 5


class GateState(Enum):
    EMPTY = "empty"
    PARTIAL = "partial"
    FULL = "full"


@dataclass
class ConfirmationGate:
    managers: Tuple[str, ...]
    confirmations: Set[str] = field(default_factory=set)

    @classmethod
    def from_managers(cls, managers: Sequence[str]) -> "ConfirmationGate":
        """
        Build a gate over exactly ``QUORUM_SIZE`` distinct managers.

        Raises:
            ValueError: If the manager list has the wrong size or repeats
        """
        managers = tuple(managers)
        if len(managers) != QUORUM_SIZE:
            raise ValueError(f"Expected exactly {QUORUM_SIZE} managers, got {len(managers)}")
        if len(set(managers)) != QUORUM_SIZE:
            raise ValueError("Managers must be distinct addresses")
        return cls(managers=managers)

    def is_manager(self, account: str) -> bool:
        return account in self.managers

    def is_confirmed(self, account: str) -> bool:
        return account in self.confirmations

    @property
    def confirmed_count(self) -> int:
        return len(self.confirmations)

    @property
    def state(self) -> GateState:
        if not self.confirmations:
            return GateState.EMPTY
        if self.confirmations == set(self.managers):
            return GateState.FULL
        return GateState.PARTIAL

    def confirm(self, caller: str) -> None:
        """
        Record caller's confirmation.

        Raises:
            NotAManager: If caller is not one of the managers
        """
        if not self.is_manager(caller):
            raise NotAManager()
        self.confirmations.add(caller)

    def require_quorum(self) -> None:
        """
        Raises:
            QuorumNotMet: Unless every manager has confirmed this cycle
        """
        if self.confirmations != set(self.managers):
            raise QuorumNotMet()

    def reset(self) -> None:
        self.confirmations.clear()
