"""Configuration models and loaders for shellkit."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from shellkit.execution.base import DEFAULT_SHELL
from shellkit.execution.local_exec import DEFAULT_KILL_GRACE_S, LocalShell
from shellkit.util.observability import ObservabilityManager

CONFIG_FILE_NAMES: tuple[str, ...] = ("shellkit.yaml", "shellkit.yml", "pyproject.toml")


@dataclass(frozen=True)
class ShellConfig:
    """Configuration for the local shell.

    Attributes:
        shell_binary: Shell invoked as ``<shell_binary> -c <command_line>``.
        timeout_s: Timeout for captured commands, or None to wait indefinitely.
        kill_grace_s: Seconds between SIGTERM and SIGKILL when a timeout fires.
        log_level: Logging level name used by the CLI.
    """

    shell_binary: str = DEFAULT_SHELL
    timeout_s: float | None = None
    kill_grace_s: float = DEFAULT_KILL_GRACE_S
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> ShellConfig:
    """Load shell configuration from disk.

    Args:
        path: Optional path to a configuration file or a directory to search.

    Returns:
        Parsed ShellConfig with defaults applied when no config exists.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return ShellConfig()

    if config_path.suffix in {".yaml", ".yml"}:
        raw_data = _load_yaml(config_path)
    elif config_path.suffix == ".toml":
        raw_data = _load_toml(config_path)
    else:
        raise ValueError(f"Unsupported config file type: {config_path}")

    return _parse_shell_config(raw_data)


def config_to_dict(config: ShellConfig) -> dict[str, Any]:
    """Serialize a ShellConfig into a JSON-compatible dictionary."""

    return {
        "shell_binary": config.shell_binary,
        "timeout_s": config.timeout_s,
        "kill_grace_s": config.kill_grace_s,
        "log_level": config.log_level,
    }


def update_timeout(config: ShellConfig, timeout_s: float | None) -> ShellConfig:
    """Return a config copy with an updated timeout."""

    return replace(config, timeout_s=timeout_s)


def create_shell(
    config: ShellConfig,
    observability: ObservabilityManager | None = None,
) -> LocalShell:
    """Build a LocalShell from configuration."""

    return LocalShell(
        config.timeout_s,
        shell_binary=config.shell_binary,
        kill_grace_s=config.kill_grace_s,
        observability=observability,
    )


def _resolve_config_path(path: Path | None) -> Path | None:
    candidate_paths: list[Path] = []
    if path is None:
        candidate_paths.extend(Path(name) for name in CONFIG_FILE_NAMES)
    elif path.is_dir():
        candidate_paths.extend(path / name for name in CONFIG_FILE_NAMES)
    else:
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")
        candidate_paths.append(path)

    for candidate in candidate_paths:
        if candidate.exists():
            return candidate
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    if path.name == "pyproject.toml":
        tool_config = data.get("tool", {}).get("shellkit", {})
        if not isinstance(tool_config, dict):
            raise ValueError("tool.shellkit must be a mapping.")
        return tool_config
    return data


def _load_yaml(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if data is not None:
        if not isinstance(data, dict):
            raise ValueError("YAML configuration must be a mapping.")
        return data
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as exc:
        raise RuntimeError(
            "PyYAML is required to parse non-JSON YAML configuration files."
        ) from exc
    parsed = yaml.safe_load(text)
    if not isinstance(parsed, dict):
        raise ValueError("YAML configuration must be a mapping.")
    return parsed


def _parse_shell_config(raw: dict[str, Any]) -> ShellConfig:
    shell_binary = str(raw.get("shell_binary", DEFAULT_SHELL)).strip()
    if not shell_binary:
        raise ValueError("shell_binary must not be empty.")
    timeout_s = _optional_float(raw.get("timeout_s"))
    if timeout_s is not None and timeout_s <= 0:
        raise ValueError("timeout_s must be positive.")
    kill_grace_s = float(raw.get("kill_grace_s", DEFAULT_KILL_GRACE_S))
    if kill_grace_s < 0:
        raise ValueError("kill_grace_s must not be negative.")
    return ShellConfig(
        shell_binary=shell_binary,
        timeout_s=timeout_s,
        kill_grace_s=kill_grace_s,
        log_level=str(raw.get("log_level", "INFO")),
    )


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected a number, got {value!r}.") from exc
