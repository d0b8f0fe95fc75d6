"""Configuration resolution and merging logic.

This module provides the single entrypoint for configuration resolution:
resolve_config(). It merges ParamConfig, UserConfig, and CLIConfig in
the correct precedence order and returns a validated PipelineConfig.

Precedence (highest to lowest):
1. CLIConfig (command-line overrides)
2. UserConfig (user file)
3. ParamConfig (expert defaults)
"""

import logging
from typing import Union, Optional

from pydantic import ValidationError

from mdrelax.contracts import ConfigurationError, assert_relative_per_source, require
from mdrelax.schemas.param import ParamConfig
from mdrelax.schemas.user import UserConfig
from mdrelax.schemas.cli import CLIConfig
from mdrelax.schemas.internal import PipelineConfig

logger = logging.getLogger(__name__)


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Deep merge multiple dictionaries.

    Later dictionaries override earlier ones. Nested dictionaries are
    merged recursively; other values are replaced.

    Examples
    --------
    >>> base = {"a": 1, "b": {"c": 2, "d": 3}}
    >>> override = {"b": {"d": 4, "e": 5}, "f": 6}
    >>> deep_merge(base, override)
    {'a': 1, 'b': {'c': 2, 'd': 4, 'e': 5}, 'f': 6}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def _validate_layer(model: type, cfg):
    if cfg is None or (isinstance(cfg, dict) and not cfg):
        return model()
    if isinstance(cfg, model):
        return cfg
    return model.model_validate(cfg)


def _sanity_check(config: PipelineConfig) -> None:
    """Cross-field checks that a single schema cannot express."""
    require(
        not config.relaxation.fit_modes or config.files.exp_file is not None,
        "Fitting to experimental data (-fit "
        + " ".join(config.relaxation.fit_modes)
        + ") requires an experimental data file (-expfile)",
        ConfigurationError,
    )
    if config.multi_source:
        assert_relative_per_source({"sxtc": config.files.sxtc, "qfile": config.files.qfile})
    if config.external.drho is not None:
        logger.info("External rhombicity %s is recorded but not used", config.external.drho)


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> PipelineConfig:
    """Resolve final runtime configuration from param, user, and CLI configs.

    This is the SINGLE ENTRYPOINT for configuration resolution. It validates
    and merges configs in the correct precedence order, then returns an
    immutable PipelineConfig for runtime use.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert configuration with complete defaults. Required.
    user_cfg : dict or UserConfig, optional
        User configuration with overrides.
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    PipelineConfig
        Fully validated, immutable runtime configuration

    Raises
    ------
    ConfigurationError
        If any layer fails validation, or the merged settings are
        inconsistent (fit modes without an experimental file, absolute
        per-source paths in multi-source mode).

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), {"T_MEM": "20 ns"})
    >>> config.output_prefix
    'rotdif-20ns'
    """
    try:
        param = _validate_layer(ParamConfig, param_cfg)
        user = _validate_layer(UserConfig, user_cfg)
        cli = _validate_layer(CLIConfig, cli_cfg)

        merged = deep_merge(
            param.model_dump(),
            user.to_internal_overrides(),
            cli.to_internal_overrides(),
        )
        config = PipelineConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration:\n{e}") from e

    _sanity_check(config)
    return config
