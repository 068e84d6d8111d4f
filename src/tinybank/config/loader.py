"""Load run configurations from YAML documents or plain dictionaries."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import Config

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(yaml_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Read a ledger + bank configuration from YAML.

    Args:
        yaml_path: Config file; the packaged defaults.yaml when omitted

    Returns:
        Validated Config

    Raises:
        ValueError: If the document is empty or not a mapping (pydantic's
            ValidationError, also a ValueError, for invalid contents)
    """
    path = Path(yaml_path) if yaml_path is not None else DEFAULTS_PATH
    data = yaml.safe_load(path.read_text())

    if data is None:
        raise ValueError(f"Config file {path} is empty")
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {path} must contain a mapping at the top level, "
            f"got {type(data).__name__}"
        )
    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Validate an already-parsed configuration mapping."""
    return Config.from_dict(data)
