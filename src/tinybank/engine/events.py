"""Side-channel notifications emitted by the ledger."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Union


@dataclass(frozen=True)
class Transfer:
    """Balance moved ``sender`` -> ``recipient`` (mints come from the zero address)."""
    sender: str
    recipient: str
    amount: int

    name = "Transfer"


@dataclass(frozen=True)
class Approval:
    """Allowance set. The approving owner is implicit and not part of the payload."""
    spender: str
    amount: int

    name = "Approval"


Event = Union[Transfer, Approval]


def event_args(event: Event) -> tuple:
    """Positional event arguments in emission order."""
    return tuple(asdict(event).values())


def events_to_records(events: List[Event]) -> List[Dict[str, Any]]:
    """Flatten events into dict rows (one row per event)."""
    records = []
    for index, event in enumerate(events):
        row: Dict[str, Any] = {"index": index, "event": event.name}
        row.update(asdict(event))
        records.append(row)
    return records
