"""Complete runtime initialization for the relaxation pipeline.

This module handles ALL initialization responsibilities:
- Configuration resolution (CLI > User > Param)
- Reading the multi-source folder list
- Configuration persistence with run ID
- Returns fully ready PipelineConfig for orchestrator
"""

import importlib.util
import json
import uuid
from pathlib import Path
from datetime import datetime, timezone

from mdrelax.contracts import ConfigurationError
from mdrelax.schemas.resolve import resolve_config
from mdrelax.schemas.param import ParamConfig
from mdrelax.schemas.cli import CLIConfig
from mdrelax.schemas.internal import PipelineConfig


def generate_run_id() -> str:
    """Sortable, unique run identifier, e.g. ``20250305T000310Z-1a2b3c4d``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{stamp}-{uuid.uuid4().hex[:8]}"


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Could not load config module from {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ConfigurationError(f"No CONFIG dict found in {path}")


def read_folder_list(path: Path | str) -> list[str]:
    """Read simulation folder names from a list file.

    Names are whitespace-separated; one per line is the usual layout and
    blank lines are ignored.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Folder list not found: {path}")
    folders = path.read_text().split()
    if not folders:
        raise ConfigurationError(f"Folder list {path} names no folders")
    return folders


def _persist_runtime_config(config: PipelineConfig) -> Path:
    """Persist final runtime configuration next to the run's outputs.

    Saves the complete resolved configuration for reproducibility and debugging.
    """
    config_file = Path(f"{config.output_prefix}-runtime_config.json")

    config_dict = config.model_dump()
    config_dict["created_at"] = datetime.now(timezone.utc).isoformat()

    with open(config_file, 'w') as f:
        json.dump(config_dict, f, indent=2, default=str)

    print(f"Runtime config saved: {config_file}")
    return config_file


def _cli_overrides(args) -> dict:
    """Collect the options that were actually given on the command line."""
    cli_args = {
        name: getattr(args, name)
        for name in CLIConfig.model_fields
        if getattr(args, name, None) is not None
    }
    folders_file = getattr(args, 'folders_file', None)
    if folders_file:
        cli_args["folders"] = read_folder_list(folders_file)
    if getattr(args, 'verbose', False):
        cli_args["log_level"] = "DEBUG"
    return cli_args


def init_runtime_config(args) -> PipelineConfig:
    """Complete runtime initialization - single entry point for the pipeline.

    Handles ALL initialization responsibilities:
    1. Configuration resolution (CLI > User > Param)
    2. Folder-list reading for multi-source runs
    3. Run ID generation
    4. Configuration persistence as ``<prefix>-runtime_config.json``

    Parameters
    ----------
    args : argparse.Namespace
        Command line arguments. ``args.config`` (optional) names a user
        config file; other attributes matching CLIConfig fields are overrides.

    Returns
    -------
    PipelineConfig
        Fully validated, ready-to-use runtime configuration with run ID.

    Raises
    ------
    ConfigurationError
        If the user config file or folder list cannot be read, or the
        resolved configuration is invalid.

    Examples
    --------
    >>> args = parser.parse_args()
    >>> config = init_runtime_config(args)
    >>> result = PipelineOrchestrator(config).run()
    """
    param_cfg = ParamConfig()

    config_path = getattr(args, 'config', None)
    user_cfg = load_user_config_dict(config_path) if config_path else None

    config = resolve_config(param_cfg, user_cfg, _cli_overrides(args))
    config = config.model_copy(update={"run_id": generate_run_id()})

    _persist_runtime_config(config)
    print(f"Runtime initialization complete. Run ID: {config.run_id}")

    return config


__all__ = ['init_runtime_config', 'generate_run_id', 'load_user_config_dict', 'read_folder_list']
