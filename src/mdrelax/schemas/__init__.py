"""Pydantic configuration schemas for the relaxation pipeline.

All configuration validation, coercion, and normalization happens at schema
validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
init_runtime_config : function
    Resolution plus folder-list reading, run ID and persistence
PipelineConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from mdrelax.schemas.resolve import resolve_config, deep_merge
from mdrelax.schemas.initialization import init_runtime_config, generate_run_id, read_folder_list
from mdrelax.schemas.internal import PipelineConfig
from mdrelax.schemas.param import ParamConfig
from mdrelax.schemas.user import UserConfig
from mdrelax.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'deep_merge',
    'init_runtime_config',
    'generate_run_id',
    'read_folder_list',
    'PipelineConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
