"""Token ledger and staking bank workbench."""

__version__ = "0.1.0"
