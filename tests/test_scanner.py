from __future__ import annotations

from pathlib import Path

import pytest

from jitlens.errors import MalformedTraceError
from jitlens.trace.records import InlinePlacement
from jitlens.trace.scanner import (
    is_environment_reason,
    scan_function_sources,
    scan_ir_blocks,
    scan_refusals,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def test_source_blocks_split_headers_and_bodies() -> None:
    blocks = scan_function_sources(_read("code.asm"))
    assert [(b.file, b.name, b.compile_id, b.second_id) for b in blocks] == [
        ("a.js", "foo", 1, 0),
        ("a.js", "bar", 1, 1),
        ("b.js", "baz", 2, 0),
        ("a.js", "foo", 3, 0),
    ]
    assert blocks[0].code == "(x, y) {\n  return bar(x) < y;\n}"
    assert not blocks[0].is_inline
    assert blocks[1].is_inline


def test_source_block_inline_placement_and_deopts() -> None:
    blocks = scan_function_sources(_read("code.asm"))
    bar = blocks[1]
    assert bar.placement == InlinePlacement(second_id=1, parent_second_id=0, pos=18)
    assert bar.deopts == ["foo not a Smi"]
    assert blocks[0].placement is None
    assert blocks[0].deopts == []


def test_source_body_runs_to_last_end_marker() -> None:
    text = "--- FUNCTION SOURCE (a.js:f) id{4,0} ---\nx\n--- END ---\ny\n--- END ---\ncode"
    (block,) = scan_function_sources(text)
    assert block.code == "x\n--- END ---\ny"


def test_malformed_source_header_is_fatal() -> None:
    with pytest.raises(MalformedTraceError):
        scan_function_sources("--- FUNCTION SOURCE (a.js:f) id{x,0} ---\nbody\n--- END ---\n")


def test_missing_end_marker_is_fatal() -> None:
    with pytest.raises(MalformedTraceError):
        scan_function_sources("--- FUNCTION SOURCE (a.js:f) id{1,0} ---\nbody\n")


def test_ir_blocks_single_and_paired_offsets() -> None:
    blocks = scan_ir_blocks(_read("hg.cfg"))
    assert [(b.file, b.name, b.compile_id) for b in blocks] == [("a.js", "foo", 1), ("b.js", "baz", 2)]
    foo = blocks[0]
    assert [(c.kind, c.pos, c.inline_id) for c in foo.changes] == [
        ("CallWithDescriptor", 18, None),
        ("CallRuntime", 13, 1),
    ]


def test_ir_uses_method_name_for_function() -> None:
    text = 'begin_compilation\n  name "lib/x.js:outer"\n  method "inner:7"\nend_compilation\n'
    (block,) = scan_ir_blocks(text)
    assert block.file == "lib/x.js"
    assert block.name == "inner"
    assert block.compile_id == 7
    assert block.changes == []


def test_malformed_ir_header_is_fatal() -> None:
    with pytest.raises(MalformedTraceError):
        scan_ir_blocks('begin_compilation\n  method "foo:1"\nend_compilation\n')


def test_refusals_drop_environment_reasons() -> None:
    notices = scan_refusals(_read("out.txt"))
    assert [(n.callee, n.caller, n.reason) for n in notices] == [
        ("foo", "baz", "target text too big"),
        ("qux", "foo", "target not inlineable"),
    ]


def test_environment_reason_denylist() -> None:
    assert is_environment_reason("cumulative AST node limit reached")
    assert is_environment_reason("inline depth limit reached")
    assert is_environment_reason("target is recursive")
    assert not is_environment_reason("target has context-allocated variables")
