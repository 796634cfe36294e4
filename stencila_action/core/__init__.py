"""Core types: results, errors, configuration and run environment."""

from .config import ActionConfig, CommandLine, ConfigError, config_from_env, load_config
from .environment import RunEnvironment
from .errors import ActionError, ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ActionConfig",
    "CommandLine",
    "ConfigError",
    "config_from_env",
    "load_config",
    # environment
    "RunEnvironment",
    # errors
    "ActionError",
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
