"""Reporting: CSV/JSON export of simulation results."""

from .export import events_to_frame, export_csv, export_json, snapshots_to_frame

__all__ = ["events_to_frame", "export_csv", "export_json", "snapshots_to_frame"]
