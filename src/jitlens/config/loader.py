from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from .schema import JitLensConfig

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".jitlens.yml"


def _load_raw_config(path: Path) -> dict[str, Any]:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        log.warning("Failed to load %s (%s). Skipping.", path, e)
        return {}


def _get_list(raw: dict[str, Any], key: str) -> list[str] | None:
    if key not in raw:
        return None
    v = raw.get(key)
    if isinstance(v, list):
        return [str(x) for x in v]
    return None


def _get_str(raw: dict[str, Any], key: str, default: str) -> str:
    v = raw.get(key)
    if v is None:
        return default
    return str(v)


def _get_optional_str(raw: dict[str, Any], key: str, default: str | None) -> str | None:
    if key not in raw:
        return default
    v = raw.get(key)
    if v is None:
        return None
    return str(v)


def _get_optional_float(raw: dict[str, Any], key: str, default: float | None) -> float | None:
    if key not in raw:
        return default
    v = raw.get(key)
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _merge_config(base: JitLensConfig, raw: dict[str, Any]) -> JitLensConfig:
    trace_flags = _get_list(raw, "trace_flags")
    if trace_flags is None:
        trace_flags = base.trace_flags
    return JitLensConfig(
        node=_get_str(raw, "node", base.node),
        trace_flags=trace_flags,
        code_trace_file=_get_str(raw, "code_trace_file", base.code_trace_file),
        ir_trace_file=_get_str(raw, "ir_trace_file", base.ir_trace_file),
        log_file=_get_str(raw, "log_file", base.log_file),
        html_path=_get_str(raw, "html_path", base.html_path),
        json_path=_get_optional_str(raw, "json_path", base.json_path),
        title=_get_str(raw, "title", base.title),
        timeout_seconds=_get_optional_float(raw, "timeout_seconds", base.timeout_seconds),
    )


def _resolve_config_paths(workdir: Path, config_paths: Iterable[Path] | None) -> list[Path]:
    if config_paths is None:
        return [workdir / CONFIG_FILENAME]
    resolved: list[Path] = []
    for path in config_paths:
        p = path
        if not p.is_absolute():
            p = workdir / p
        resolved.append(p)
    return resolved


def load_config(workdir: Path, config_paths: Iterable[Path] | None = None) -> JitLensConfig:
    paths = _resolve_config_paths(workdir, config_paths)
    if config_paths is None and not paths[0].exists():
        return JitLensConfig()

    cfg = JitLensConfig()
    for path in paths:
        if not path.exists():
            log.warning("Config %s not found; skipping.", path)
            continue
        raw = _load_raw_config(path)
        if not isinstance(raw, dict):
            log.warning("Config %s is not a mapping; skipping.", path)
            continue
        cfg = _merge_config(cfg, raw)
    return cfg
