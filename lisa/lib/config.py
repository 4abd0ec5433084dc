"""
Configuration loaders for lisa.

Tree-level configuration lives in .lisa/config.yaml and is read through the
entity store. The CLI resolves which tree to operate on from --root or the
LISA_ROOT environment variable.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from lisa.lib.constants import DEFAULT_CHECKPOINTS

ROOT_ENV_VAR = "LISA_ROOT"


@dataclass
class GrindConfig:
    """Retry policy for the worker loop."""
    max_attempts: int = 5
    same_issue_threshold: int = 2
    timeout_minutes: int = 10


@dataclass
class Config:
    """Tree configuration from config.yaml"""
    project: Optional[dict] = None      # {name, team_size}
    grind: Optional[GrindConfig] = None
    quality: Optional[dict] = None      # Checklists per artifact: prd, architecture, stories
    stack: Optional[dict[str, str]] = None
    checkpoints: Optional[list[str]] = None


def default_config() -> Config:
    """Config written by a fresh initialize()."""
    return Config(grind=GrindConfig(), checkpoints=list(DEFAULT_CHECKPOINTS))


def config_from_dict(data: dict | None) -> Config:
    """Build Config from parsed YAML, applying grind defaults for missing keys."""
    data = data or {}
    grind = None
    if data.get("grind") is not None:
        defaults = asdict(GrindConfig())
        defaults.update({k: v for k, v in data["grind"].items() if k in defaults})
        grind = GrindConfig(**defaults)

    return Config(
        project=data.get("project"),
        grind=grind,
        quality=data.get("quality"),
        stack=data.get("stack"),
        checkpoints=data.get("checkpoints"),
    )


def config_to_dict(config: Config) -> dict:
    """Serialize Config for YAML, dropping unset sections."""
    return {k: v for k, v in asdict(config).items() if v is not None}


def resolve_root(explicit: str | None = None) -> Path:
    """Project root: explicit argument, then $LISA_ROOT, then the current directory."""
    if explicit:
        return Path(explicit).expanduser().resolve()
    env_root = os.environ.get(ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path.cwd()
