from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

KNOWN_KEYS = {
    "node",
    "trace_flags",
    "code_trace_file",
    "ir_trace_file",
    "log_file",
    "html_path",
    "json_path",
    "title",
    "timeout_seconds",
}

# Set by jitlens itself from code_trace_file / ir_trace_file.
_MANAGED_FLAGS = ("--redirect-code-traces-to", "--trace_hydrogen_file", "--trace-hydrogen-file")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_list_strings(raw: dict[str, Any], key: str, errors: list[str]) -> None:
    if key not in raw:
        return
    value = raw.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"{key} must be a list of strings")


def _validate_str(raw: dict[str, Any], key: str, errors: list[str], optional: bool = False) -> None:
    if key not in raw:
        return
    value = raw.get(key)
    if value is None and optional:
        return
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{key} must be a non-empty string")


def validate_raw_config(raw: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    unknown = sorted(set(raw) - KNOWN_KEYS)
    for key in unknown:
        errors.append(f"Unknown key: {key}")

    for key in ["node", "code_trace_file", "ir_trace_file", "log_file", "html_path", "title"]:
        _validate_str(raw, key, errors)
    _validate_str(raw, "json_path", errors, optional=True)

    _validate_list_strings(raw, "trace_flags", errors)
    flags = raw.get("trace_flags")
    if isinstance(flags, list):
        for flag in flags:
            if isinstance(flag, str) and flag.startswith(_MANAGED_FLAGS):
                errors.append(f"trace_flags must not set {flag.split('=', 1)[0]} (use the *_file keys)")

    if "timeout_seconds" in raw and raw.get("timeout_seconds") is not None:
        value = raw.get("timeout_seconds")
        if not _is_number(value) or value <= 0:
            errors.append("timeout_seconds must be a positive number")
    return errors


def validate_config_path(path: Path) -> list[str]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except Exception as exc:
        return [f"{path}: failed to read ({exc})"]
    if not isinstance(raw, dict):
        return [f"{path}: config must be a mapping"]
    errors = validate_raw_config(raw)
    return [f"{path}: {err}" for err in errors]


def validate_config_paths(paths: Iterable[Path]) -> list[str]:
    errors: list[str] = []
    for path in paths:
        if not path.exists():
            errors.append(f"{path}: file not found")
            continue
        errors.extend(validate_config_path(path))
    return errors
