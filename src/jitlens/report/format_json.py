from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jitlens.model.entities import FunctionVersion, TraceModel
from jitlens.report.spans import display_kind

SCHEMA_VERSION = 1


def _runtime_counts(version: FunctionVersion) -> dict[str, int]:
    counts: dict[str, int] = {}
    for annotation in version.runtime:
        kind = display_kind(annotation.kind)
        counts[kind] = counts.get(kind, 0) + 1
    return counts


def _inline_dict(model: TraceModel, version: FunctionVersion) -> dict[str, Any]:
    return {
        "name": version.name,
        "second_id": version.second_id,
        "pos": version.inline_pos,
        "runtime_calls": _runtime_counts(version),
        "inlines": [_inline_dict(model, model.version(h)) for h in version.inlines],
    }


def _version_dict(model: TraceModel, version: FunctionVersion) -> dict[str, Any]:
    return {
        "compile_id": version.compile_id,
        "deopts": list(version.deopts),
        "runtime_calls": _runtime_counts(version),
        "inline_count": sum(1 for _ in model.descendants(version.handle)),
        "inlines": [_inline_dict(model, model.version(h)) for h in version.inlines],
    }


def to_dict(model: TraceModel) -> dict[str, Any]:
    files: list[dict[str, Any]] = []
    for source_file in model.files.values():
        functions = []
        for fn in source_file.functions.values():
            functions.append(
                {
                    "name": fn.name,
                    "deopted": fn.deopted,
                    "did_not_inline_reason": fn.did_not_inline_reason or None,
                    "versions": [_version_dict(model, model.version(h)) for h in fn.versions],
                }
            )
        files.append({"path": source_file.path, "functions": functions})
    return {
        "schema_version": SCHEMA_VERSION,
        "files": files,
        "stats": {
            "files": len(model.files),
            "functions": len(model.functions),
            "versions": sum(1 for v in model.versions if not v.is_inline),
            "inline_copies": sum(1 for v in model.versions if v.is_inline),
            "deopts": sum(len(v.deopts) for v in model.versions),
        },
    }


def write_json(model: TraceModel, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(to_dict(model), indent=2), encoding="utf-8")
