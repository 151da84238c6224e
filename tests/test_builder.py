from __future__ import annotations

from pathlib import Path

import pytest

from jitlens.errors import DuplicateInlineError, InlineCycleError, UnresolvedReferenceError
from jitlens.model.builder import build_model
from jitlens.model.entities import RuntimeAnnotation, TraceModel

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _fixture_model():
    return build_model(
        (FIXTURES_DIR / "code.asm").read_text(encoding="utf-8"),
        (FIXTURES_DIR / "hg.cfg").read_text(encoding="utf-8"),
        (FIXTURES_DIR / "out.txt").read_text(encoding="utf-8"),
    )


def _source(file: str, name: str, ids: str, body: str, tail: str = "") -> str:
    return f"--- FUNCTION SOURCE ({file}:{name}) id{{{ids}}} ---\n{body}\n--- END ---\n{tail}"


def test_files_functions_and_recompiles() -> None:
    model = _fixture_model()
    assert list(model.files) == ["a.js", "b.js"]
    assert list(model.files["a.js"].functions) == ["foo"]
    foo = model.functions["foo"]
    assert [model.version(h).compile_id for h in foo.versions] == [1, 3]
    assert foo.last_version == foo.versions[-1]
    assert model.files["a.js"].versions_by_id[3] == foo.versions[1]


def test_inline_copy_only_reachable_through_owner() -> None:
    model = _fixture_model()
    foo_v1 = model.version(model.functions["foo"].versions[0])
    child = model.version(foo_v1.inline_by_second_id[1])
    assert child.is_inline
    assert child.name == "bar"
    assert child.file == "a.js"
    assert child.inline_pos == 18
    assert foo_v1.inlines == [child.handle]
    assert "bar" not in model.functions
    for fn in model.functions.values():
        assert child.handle not in fn.versions
    assert model.forest_errors() == []


def test_runtime_annotations_routed_to_inline_child() -> None:
    model = _fixture_model()
    foo_v1 = model.version(model.functions["foo"].versions[0])
    child = model.version(foo_v1.inline_by_second_id[1])
    assert foo_v1.runtime == [RuntimeAnnotation(pos=18, kind="CallWithDescriptor")]
    assert child.runtime == [RuntimeAnnotation(pos=13, kind="CallRuntime")]


def test_inline_block_deopts_recorded_on_owner() -> None:
    model = _fixture_model()
    foo = model.functions["foo"]
    v1, v3 = (model.version(h) for h in foo.versions)
    assert v1.deopts == ["foo not a Smi"]
    assert v3.deopts == []
    assert foo.deopted
    assert not model.functions["baz"].deopted


def test_refusal_reason_last_one_wins() -> None:
    code = _source("a.js", "bar", "1,0", "x")
    log = (
        "Did not inline bar called from a (target not inlineable).\n"
        "Did not inline bar called from b (target has context-allocated variables).\n"
        "Did not inline bar called from c (target is recursive).\n"
        "Did not inline missing called from c (target not inlineable).\n"
    )
    model = build_model(code, "", log)
    assert model.functions["bar"].did_not_inline_reason == "target has context-allocated variables"


def test_nested_inline_resolves_parent_by_second_id() -> None:
    code = (
        _source("a.js", "f", "5,0", "return g();")
        + _source("a.js", "g", "5,1", "return h();", "INLINE (g) id{5,1} AS 1 AT <0:7>\n")
        + _source("a.js", "h", "5,2", "return 1;", "INLINE (h) id{5,2} AS 2 AT <1:7>\n")
    )
    ir = 'begin_compilation\n  name "a.js:f"\n  method "f:5"\n    0 0 v1 CallNew t1 changes[*] pos:2_0 \n'
    model = build_model(code, ir, "")
    f = model.version(model.functions["f"].versions[0])
    g = model.version(f.inline_by_second_id[1])
    h = model.version(f.inline_by_second_id[2])
    assert f.inlines == [g.handle]
    assert g.inlines == [h.handle]
    assert h.owner == f.handle
    assert h.runtime == [RuntimeAnnotation(pos=0, kind="CallNew")]
    assert [v.name for v in model.descendants(f.handle)] == ["g", "h"]


def test_inline_without_placement_is_registered_but_not_placed() -> None:
    code = _source("a.js", "f", "1,0", "body") + _source("a.js", "g", "1,1", "inner")
    model = build_model(code, "", "")
    f = model.version(model.functions["f"].versions[0])
    assert 1 in f.inline_by_second_id
    assert f.inlines == []


def test_duplicate_inline_id_is_fatal() -> None:
    code = (
        _source("a.js", "f", "1,0", "body")
        + _source("a.js", "g", "1,1", "inner")
        + _source("a.js", "h", "1,1", "other")
    )
    with pytest.raises(DuplicateInlineError):
        build_model(code, "", "")


def test_inline_placed_inside_itself_is_fatal() -> None:
    code = _source("a.js", "f", "1,0", "body") + _source("a.js", "g", "1,1", "inner", "INLINE (g) id{1,1} AS 1 AT <1:0>\n")
    with pytest.raises(InlineCycleError):
        build_model(code, "", "")


def test_forest_errors_report_cycles_and_shared_children() -> None:
    model = TraceModel()
    root = model.add_version("a.js", "f", "body", compile_id=1)
    a = model.add_version("a.js", "g", "x", second_id=1, owner=root.handle)
    b = model.add_version("a.js", "h", "y", second_id=2, owner=root.handle)
    root.inlines.append(a.handle)
    a.inlines.append(b.handle)
    assert model.forest_errors() == []
    b.inlines.append(a.handle)
    errors = model.forest_errors()
    assert any("inlined into both" in e for e in errors)
    root.inlines.clear()
    errors = model.forest_errors()
    assert any("inline cycle" in e for e in errors)


@pytest.mark.parametrize(
    ("code", "ir", "kind"),
    [
        (_source("a.js", "g", "9,1", "inner"), "", "file"),
        (_source("a.js", "f", "1,0", "x") + _source("a.js", "g", "9,1", "inner"), "", "version"),
        (
            _source("a.js", "f", "1,0", "x") + _source("a.js", "g", "1,1", "y", "INLINE (g) id{1,1} AS 1 AT <4:0>\n"),
            "",
            "inline",
        ),
        (_source("a.js", "f", "1,0", "x"), 'begin_compilation\n  name "b.js:f"\n  method "f:1"\n', "file"),
        (_source("a.js", "f", "1,0", "x"), 'begin_compilation\n  name "a.js:g"\n  method "g:1"\n', "function"),
        (_source("a.js", "f", "1,0", "x"), 'begin_compilation\n  name "a.js:f"\n  method "f:2"\n', "version"),
        (
            _source("a.js", "f", "1,0", "x"),
            'begin_compilation\n  name "a.js:f"\n  method "f:1"\n    0 0 v1 CallNew t1 changes[*] pos:3_0 \n',
            "inline",
        ),
    ],
)
def test_unresolved_references_are_fatal(code: str, ir: str, kind: str) -> None:
    with pytest.raises(UnresolvedReferenceError) as excinfo:
        build_model(code, ir, "")
    assert excinfo.value.failure.kind == kind
