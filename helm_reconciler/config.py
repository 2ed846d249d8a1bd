"""Configuration objects for helm-reconciler."""

from dataclasses import dataclass


@dataclass
class InstallConfig:
    """Configuration for the Install reconciler."""

    log_buffer_size: int = 10
