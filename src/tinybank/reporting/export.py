"""Export functionality for CSV and JSON."""

import json
from typing import Any, Dict, List

import pandas as pd

from ..engine.events import Event, events_to_records
from ..simulation.runner import SimulationResult


def snapshots_to_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per executed step, balances flattened into ``balance_<label>`` columns."""
    data = []
    for snapshot in result.snapshots:
        row: Dict[str, Any] = {
            'step': snapshot.step,
            'action': snapshot.action,
            'height': snapshot.height,
            'total_supply': snapshot.total_supply,
            'total_staked': snapshot.total_staked,
            'bank_custody': snapshot.bank_custody,
            'reward_per_block': snapshot.reward_per_block,
            'confirmations': snapshot.confirmations,
            'reverted': snapshot.reverted,
        }
        for label, balance in snapshot.balances.items():
            row[f'balance_{label}'] = balance
        data.append(row)

    # Amounts exceed int64; keep them as Python ints
    return pd.DataFrame(data, dtype=object)


def events_to_frame(events: List[Event]) -> pd.DataFrame:
    """Tabulate ledger notifications."""
    return pd.DataFrame(events_to_records(events), dtype=object)


def export_csv(result: SimulationResult, filepath: str):
    """Export per-step snapshots to CSV."""
    df = snapshots_to_frame(result)
    df.to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'snapshots': [
            {
                'step': s.step,
                'action': s.action,
                'height': s.height,
                'balances': s.balances,
                'total_supply': s.total_supply,
                'total_staked': s.total_staked,
                'bank_custody': s.bank_custody,
                'reward_per_block': s.reward_per_block,
                'confirmations': s.confirmations,
                'reverted': s.reverted,
            }
            for s in result.snapshots
        ],
        'receipts': [
            {
                'height': r.height,
                'sender': r.sender,
                'contract': r.contract,
                'method': r.method,
                'events': events_to_records(r.events),
            }
            for r in result.receipts
        ],
        'failures': result.failures,
        'final_metrics': result.final_metrics,
        'conservation_errors': result.conservation_errors,
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)
