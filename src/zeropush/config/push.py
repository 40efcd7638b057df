"""Push protocol settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_positive_int, require_env_var

DEFAULT_PUSH_VERSION: Final[int] = 1
PUSH_VERSION_ENV: Final[str] = "ZEROPUSH_PUSH_VERSION"
REGISTRY_ENV: Final[str] = "ZEROPUSH_REGISTRY"


@dataclass(frozen=True, slots=True)
class PushConfig:
    """Process-wide push settings, fixed at startup and handed to the processor."""

    supported_push_version: int = DEFAULT_PUSH_VERSION


def get_push_config() -> PushConfig:
    version = optional_positive_int(PUSH_VERSION_ENV)
    if version is None:
        return PushConfig()
    return PushConfig(supported_push_version=version)


def get_registry_reference(explicit: str | None = None) -> str:
    """Return ``explicit`` or the ``module:attribute`` reference in ``ZEROPUSH_REGISTRY``."""

    return explicit or require_env_var(REGISTRY_ENV)
