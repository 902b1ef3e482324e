"""Reconciler configuration for locksync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class LockSyncConfig:
    """Reconciler configuration.

    Parameters
    ----------
    debug : bool
        Log accepted and dropped push events, mapping results and
        command traces at DEBUG level.
    manufacturer : str
        Manufacturer pushed as accessory information on bind.
    model : str
        Model name pushed as accessory information on bind.
    log_payloads : bool
        Include (redacted) event payloads in debug logs.
    """

    debug: bool = False
    manufacturer: str = "SimpliSafe"
    model: str = "Smart Lock"
    log_payloads: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> LockSyncConfig:
        """Create configuration from ``LOCKSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "LOCKSYNC_MANUFACTURER": "manufacturer",
            "LOCKSYNC_MODEL": "model",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "debug" not in overrides:
            config_kwargs["debug"] = _env_bool(env.get("LOCKSYNC_DEBUG"), False)

        if "log_payloads" not in overrides:
            config_kwargs["log_payloads"] = _env_bool(env.get("LOCKSYNC_LOG_PAYLOADS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
