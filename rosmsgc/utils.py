"""
Configuration loading for rosmsgc.

Configuration is layered with OmegaConf: the packaged ``config/default.yaml``
first, then an optional user YAML file, then ``key=value`` overrides.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>

Licensed under the Apache License, Version 2.0.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from omegaconf import DictConfig, OmegaConf

CONFIG_DIR = Path(__file__).parent / "config"
DEFAULT_CONFIG = CONFIG_DIR / "default.yaml"


def load_cfg(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Sequence[str]] = None,
) -> DictConfig:
    """Load the rosmsgc configuration.

    Args:
        path: Optional user YAML file merged over the defaults. A bare name
            without suffix is looked up in the packaged config directory.
        overrides: Dotlist overrides such as ``["build.compiler=csc"]``.

    Returns:
        Merged configuration

    Raises:
        FileNotFoundError: If ``path`` does not exist
    """
    cfg = OmegaConf.load(DEFAULT_CONFIG)

    if path is not None:
        cfg_path = Path(path)
        if not cfg_path.suffix and not cfg_path.exists():
            cfg_path = CONFIG_DIR / f"{cfg_path.name}.yaml"
        if not cfg_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        cfg = OmegaConf.merge(cfg, OmegaConf.load(cfg_path))

    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))

    return cfg
