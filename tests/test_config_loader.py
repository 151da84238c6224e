from __future__ import annotations

from pathlib import Path

from jitlens.config.loader import load_config
from jitlens.config.schema import JitLensConfig


def test_defaults_without_config_file(tmp_path: Path) -> None:
    assert load_config(tmp_path) == JitLensConfig()


def test_load_multiple_configs_later_wins(tmp_path: Path) -> None:
    cfg1 = tmp_path / "a.yml"
    cfg2 = tmp_path / "b.yml"
    cfg1.write_text("node: /opt/node6/bin/node\nhtml_path: reports/a.html\ntimeout_seconds: 30\n", encoding="utf-8")
    cfg2.write_text("html_path: reports/b.html\ntrace_flags: ['--trace-deopt']\njson_path:\n", encoding="utf-8")

    cfg = load_config(tmp_path, [cfg1, cfg2])

    assert cfg.node == "/opt/node6/bin/node"
    assert cfg.html_path == "reports/b.html"
    assert cfg.trace_flags == ["--trace-deopt"]
    assert cfg.timeout_seconds == 30.0
    assert cfg.json_path is None
    assert cfg.code_trace_file == "code.asm"


def test_missing_and_invalid_configs_are_skipped(tmp_path: Path) -> None:
    bad = tmp_path / "bad.yml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    cfg = load_config(tmp_path, [tmp_path / "missing.yml", bad])
    assert cfg == JitLensConfig()


def test_default_config_file_is_picked_up(tmp_path: Path) -> None:
    (tmp_path / ".jitlens.yml").write_text("title: Hot paths\n", encoding="utf-8")
    assert load_config(tmp_path).title == "Hot paths"
