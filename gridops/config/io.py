"""
YAML I/O for differencing configurations.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from gridops.config.differencing import DifferencingConfig


def load_differencing_config(path: str | Path) -> DifferencingConfig:
    """
    Load a differencing configuration from a YAML file.

    Parameters
    ----------
    path : str | Path
        Path to the YAML file.

    Returns
    -------
    DifferencingConfig
        Validated configuration. An empty file gives the defaults.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist.
    ValueError
        If the YAML is malformed or fails validation.

    Examples
    --------
    >>> config = load_differencing_config("differencing.yaml")
    >>> engine = DerivativeEngine(mesh, config)
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}, got {type(data).__name__}")

    # Accept either a bare mapping or one nested under "differencing"
    data = data.get("differencing", data)

    try:
        return DifferencingConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid differencing configuration in {path}:\n{e}") from e


def save_differencing_config(config: DifferencingConfig, path: str | Path) -> None:
    """
    Save a differencing configuration to a YAML file.

    Parameters
    ----------
    config : DifferencingConfig
        Configuration to save.
    path : str | Path
        Output path; parent directories are created.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    with open(path, "w") as f:
        yaml.dump({"differencing": data}, f, default_flow_style=False, sort_keys=False)


__all__ = ["load_differencing_config", "save_differencing_config"]
