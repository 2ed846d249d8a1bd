"""Action package.

This package contains the interface to the engine running Helm actions, and
the configuration and log collection handed to it for each action.
"""

from .config import ActionConfiguration, ConfigFactory
from .engine import ActionEngine
from .log import LogBuffer, LogFunc, debug_log

__all__ = [
    "ActionConfiguration",
    "ConfigFactory",
    "ActionEngine",
    "LogBuffer",
    "LogFunc",
    "debug_log",
]
