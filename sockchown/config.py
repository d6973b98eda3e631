from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from sockchown.errors import ConfigError


EXIT_POLICIES = ("last_error_wins", "first_error_wins")


def _flag(section: dict[str, Any], section_name: str, key: str) -> bool:
    value = section.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(f"{section_name}.{key} must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class ProbeConfig:
    exit_policy: str = "last_error_wins"
    fail_on_mismatch: bool = False
    detailed_resolution_errors: bool = False
    json_report: bool = False


def load_config(cfg_path: Optional[Path]) -> ProbeConfig:
    raw: Any = {}
    if cfg_path is not None:
        try:
            raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        except OSError as e:
            raise ConfigError(f"cannot read config {cfg_path}: {e.strerror}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {cfg_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"config {cfg_path} must be a mapping")

    probe = raw.get("probe", {})
    report = raw.get("report", {})
    if not isinstance(probe, dict):
        probe = {}
    if not isinstance(report, dict):
        report = {}

    exit_policy = str(probe.get("exit_policy", "last_error_wins"))
    if exit_policy not in EXIT_POLICIES:
        raise ConfigError(f"unknown exit_policy: {exit_policy} (expected one of {', '.join(EXIT_POLICIES)})")

    return ProbeConfig(
        exit_policy=exit_policy,
        fail_on_mismatch=_flag(probe, "probe", "fail_on_mismatch"),
        detailed_resolution_errors=_flag(probe, "probe", "detailed_resolution_errors"),
        json_report=_flag(report, "report", "json"),
    )
