"""Base type for stateful components hosted on a chain."""

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Sequence, Tuple

from .errors import Revert

logger = logging.getLogger(__name__)


class Contract:
    """
    A component with an address, a single replaceable ``state`` object and
    an append-only event log.

    Keeping all mutable data in ``state`` lets the host snapshot and restore
    a component by swapping that one attribute. The event log stays outside
    ``state`` so snapshots do not copy it; a rollback truncates it instead.
    """

    def __init__(self, address: str, deployer: str):
        self.address = address
        self.deployer = deployer
        self.state = None
        self.events: List[Any] = []

    def snapshot(self) -> Tuple[Any, int]:
        """Deep copy of the current state, plus the event log length."""
        return copy.deepcopy(self.state), len(self.events)

    def restore(self, snapshot: Tuple[Any, int]) -> None:
        """Put back a snapshot produced by ``snapshot``."""
        state, event_mark = snapshot
        self.state = state
        del self.events[event_mark:]


@contextmanager
def atomic(contracts: Sequence[Contract]) -> Iterator[None]:
    """
    Run a block all-or-nothing across several contracts.

    On any exception every contract's state is rolled back, and events
    emitted inside the block are dropped, before the error propagates.
    """
    snapshots = [(contract, contract.snapshot()) for contract in contracts]
    try:
        yield
    except Exception as exc:
        for contract, snapshot in snapshots:
            contract.restore(snapshot)
        if isinstance(exc, Revert):
            logger.debug("Rolled back %d contract(s): %s", len(snapshots), exc.reason)
        raise
