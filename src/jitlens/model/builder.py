from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from jitlens.errors import InlineCycleError, UnresolvedReferenceError
from jitlens.model.entities import FunctionVersion, RuntimeAnnotation, TraceModel
from jitlens.model.resolver import ResolveFailure, Resolver
from jitlens.trace.records import IRBlock, RefusalNotice, SourceBlock
from jitlens.trace.scanner import scan_function_sources, scan_ir_blocks, scan_refusals

log = logging.getLogger(__name__)

T = TypeVar("T")


def _require(result: T | ResolveFailure, context: str) -> T:
    if isinstance(result, ResolveFailure):
        raise UnresolvedReferenceError(result, context)
    return result


def _apply_inline_block(resolver: Resolver, block: SourceBlock) -> None:
    context = f"inline source {block.file}:{block.name} id{{{block.compile_id},{block.second_id}}}"
    owner = _require(resolver.file_version(block.file, block.compile_id), context)
    child = resolver.register_inline(owner, block.name, block.second_id, block.code)
    # Deopts are logged against the running compiled code, i.e. the owner.
    owner.deopts.extend(block.deopts)
    if block.placement is None:
        return
    parent = _require(resolver.inline_child(owner, block.placement.parent_second_id), context)
    if parent.handle == child.handle:
        raise InlineCycleError(f"{context} is placed inside itself")
    child.inline_pos = block.placement.pos
    parent.inlines.append(child.handle)


def apply_source_blocks(model: TraceModel, blocks: Iterable[SourceBlock]) -> None:
    resolver = Resolver(model)
    for block in blocks:
        if block.is_inline:
            _apply_inline_block(resolver, block)
            continue
        source_file = resolver.register_file(block.file)
        fn = resolver.register_function(source_file, block.name)
        version = resolver.register_version(source_file, fn, block.compile_id, block.code)
        version.deopts.extend(block.deopts)
    errors = model.forest_errors()
    if errors:
        raise InlineCycleError("; ".join(errors))
    for fn in model.functions.values():
        fn.deopted = any(model.version(h).deopts for h in fn.versions)


def _annotation_target(
    resolver: Resolver, version: FunctionVersion, inline_id: int | None, context: str
) -> FunctionVersion:
    if inline_id is None:
        return version
    return _require(resolver.inline_child(version, inline_id), context)


def apply_ir_blocks(model: TraceModel, blocks: Iterable[IRBlock]) -> None:
    resolver = Resolver(model)
    for block in blocks:
        context = f"IR block {block.file}:{block.name}:{block.compile_id}"
        _require(resolver.file(block.file), context)
        _require(resolver.function(block.file, block.name), context)
        version = _require(resolver.function_version(block.file, block.name, block.compile_id), context)
        for change in block.changes:
            target = _annotation_target(resolver, version, change.inline_id, context)
            target.runtime.append(RuntimeAnnotation(pos=change.pos, kind=change.kind))


def apply_refusals(model: TraceModel, notices: Iterable[RefusalNotice]) -> None:
    resolver = Resolver(model)
    for notice in notices:
        fn = resolver.function_by_name(notice.callee)
        if fn is None:
            continue
        fn.did_not_inline_reason = notice.reason


def build_model(code_text: str, ir_text: str, log_text: str) -> TraceModel:
    """Build the entity graph from the source dump, the IR log and the run log.

    Source blocks go first since IR annotations resolve through the inline
    maps they create.
    """
    model = TraceModel()
    source_blocks = scan_function_sources(code_text)
    apply_source_blocks(model, source_blocks)
    log.debug(
        "Loaded %d source blocks (%d files, %d functions)",
        len(source_blocks),
        len(model.files),
        len(model.functions),
    )
    ir_blocks = scan_ir_blocks(ir_text)
    apply_ir_blocks(model, ir_blocks)
    log.debug("Applied %d IR blocks", len(ir_blocks))
    notices = scan_refusals(log_text)
    apply_refusals(model, notices)
    log.debug("Applied %d inlining refusal notices", len(notices))
    return model
