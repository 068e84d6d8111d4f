"""Configuration schema and loader."""

from .loader import config_from_dict, load_config
from .schema import BankParams, ChainParams, Config, LedgerParams, Scenario, Step

__all__ = [
    "Config",
    "LedgerParams",
    "BankParams",
    "ChainParams",
    "Scenario",
    "Step",
    "load_config",
    "config_from_dict",
]
