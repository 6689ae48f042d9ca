"""Configuration helpers for the sns-quill CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sns_quill.client import DEFAULT_IC_URL, IC_URL_ENV_VAR, TransportConfig
from sns_quill.errors import ConfigError
from sns_quill.signing import DEFAULT_INGRESS_EXPIRY_SECONDS

DEFAULT_CONFIG_PATH = Path.home() / ".sns_quill" / "config.toml"
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_POLL_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class CLIConfig:
    ic_url: str = DEFAULT_IC_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    ingress_expiry_seconds: int = DEFAULT_INGRESS_EXPIRY_SECONDS

    def transport(self) -> TransportConfig:
        return TransportConfig(
            ic_url=self.ic_url,
            timeout=self.timeout_seconds,
            poll_interval=self.poll_interval_seconds,
        )


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _to_positive_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a positive number") from exc
    if number <= 0:
        raise ConfigError(f"{field_name} must be a positive number")
    return number


def _to_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{field_name} must be a positive integer")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if config_path.exists():
        parsed = _load_toml(config_path)
    elif path:
        raise ConfigError(f"config file not found: {config_path}")
    else:
        parsed = {}

    section = parsed.get("cli")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[cli] must be a table")

    env_ic_url = os.getenv(IC_URL_ENV_VAR)
    configured_ic_url = str(source.get("ic_url", DEFAULT_IC_URL)).strip()
    ic_url = env_ic_url.strip() if env_ic_url and env_ic_url.strip() else configured_ic_url
    if not ic_url:
        raise ConfigError("ic_url must not be empty")
    if not ic_url.startswith(("http://", "https://")):
        raise ConfigError("ic_url must start with http:// or https://")

    timeout_seconds = _to_positive_number(
        source.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "timeout_seconds"
    )
    poll_interval_seconds = _to_positive_number(
        source.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
        "poll_interval_seconds",
    )
    ingress_expiry_seconds = _to_positive_int(
        source.get("ingress_expiry_seconds", DEFAULT_INGRESS_EXPIRY_SECONDS),
        "ingress_expiry_seconds",
    )

    return CLIConfig(
        ic_url=ic_url,
        timeout_seconds=timeout_seconds,
        poll_interval_seconds=poll_interval_seconds,
        ingress_expiry_seconds=ingress_expiry_seconds,
    )
