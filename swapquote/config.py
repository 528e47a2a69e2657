"""
Runtime settings read from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SWAP_URL_TEMPLATE = "https://kuru.io/swap?from={from_address}&to={to_address}"


@dataclass(frozen=True)
class Settings:
    """Service settings."""
    cache_ttl_seconds: float = 2 * 60 * 60
    fetch_timeout_seconds: float = 30.0
    settle_delay_seconds: float = 5.0
    swap_url_template: str = DEFAULT_SWAP_URL_TEMPLATE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Settings with defaults for unset variables

        Raises:
            ValueError: If a numeric variable is malformed or not positive
        """
        if environ is None:
            environ = os.environ

        return cls(
            cache_ttl_seconds=_positive_float(environ, "CACHE_TTL_SECONDS", cls.cache_ttl_seconds),
            fetch_timeout_seconds=_positive_float(environ, "FETCH_TIMEOUT_SECONDS", cls.fetch_timeout_seconds),
            settle_delay_seconds=_positive_float(environ, "SETTLE_DELAY_SECONDS", cls.settle_delay_seconds),
            swap_url_template=environ.get("SWAP_URL_TEMPLATE", DEFAULT_SWAP_URL_TEMPLATE),
            log_level=environ.get("LOG_LEVEL", cls.log_level).upper(),
        )


def _positive_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
