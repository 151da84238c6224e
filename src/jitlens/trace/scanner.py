from __future__ import annotations

import re

from jitlens.errors import MalformedTraceError
from jitlens.trace.records import (
    ChangeAnnotation,
    InlinePlacement,
    IRBlock,
    RefusalNotice,
    SourceBlock,
)

SOURCE_DELIMITER = "--- FUNCTION SOURCE "

_SOURCE_HEADER = re.compile(r"\s*\((.*?):(.*?)\) id\{(\d+),(\d+)\} ---\n([\s\S]*)\n--- END ---")
_DEOPT = re.compile(r"\[deoptimizing[^:]*: begin [^ ]* (.*?)\]")
_INLINE = re.compile(r"INLINE \(.*?\) id\{\d+,\d+\} AS (\d+) AT <(\d+):(\d+)>")

_IR_DELIMITER = re.compile(r"^begin_compilation", re.MULTILINE)
_IR_HEADER = re.compile(r'\s*name "(.*?):(.*?)"\s+method "(.*?):(\d+)"')
_IR_CHANGE = re.compile(
    r"^\s+\d \d \w\d+ (\w+).*? changes\[\*\][^\n]* pos:(\d+)(?:_(\d+))? ",
    re.MULTILINE,
)

_REFUSAL = re.compile(r"Did not inline (.*?) called from (.*?) \((.*?)\)\.")
# Depth, recursion and cumulative-size refusals depend on the call path, not
# on the callee, so they say nothing useful about the callee itself.
_ENVIRONMENT_REASON = re.compile(r"(cumulative|depth limit|recursive)")


def _scan_source_block(chunk: str) -> SourceBlock:
    m = _SOURCE_HEADER.match(chunk)
    if not m:
        raise MalformedTraceError("function source", chunk)
    placement = None
    inline = _INLINE.search(chunk)
    if inline:
        placement = InlinePlacement(
            second_id=int(inline.group(1)),
            parent_second_id=int(inline.group(2)),
            pos=int(inline.group(3)),
        )
    return SourceBlock(
        file=m.group(1),
        name=m.group(2),
        compile_id=int(m.group(3)),
        second_id=int(m.group(4)),
        code=m.group(5),
        deopts=[d.group(1) for d in _DEOPT.finditer(chunk)],
        placement=placement,
    )


def scan_function_sources(text: str) -> list[SourceBlock]:
    blocks: list[SourceBlock] = []
    for chunk in text.split(SOURCE_DELIMITER):
        if not chunk.strip():
            continue
        blocks.append(_scan_source_block(chunk))
    return blocks


def _scan_ir_block(chunk: str) -> IRBlock:
    m = _IR_HEADER.match(chunk)
    if not m:
        raise MalformedTraceError("IR", chunk)
    changes: list[ChangeAnnotation] = []
    for c in _IR_CHANGE.finditer(chunk):
        inline_pos = c.group(3)
        if inline_pos is None:
            changes.append(ChangeAnnotation(kind=c.group(1), pos=int(c.group(2))))
        else:
            changes.append(
                ChangeAnnotation(kind=c.group(1), pos=int(inline_pos), inline_id=int(c.group(2)))
            )
    return IRBlock(file=m.group(1), name=m.group(3), compile_id=int(m.group(4)), changes=changes)


def scan_ir_blocks(text: str) -> list[IRBlock]:
    blocks: list[IRBlock] = []
    for chunk in _IR_DELIMITER.split(text):
        if not chunk.strip():
            continue
        blocks.append(_scan_ir_block(chunk))
    return blocks


def is_environment_reason(reason: str) -> bool:
    return _ENVIRONMENT_REASON.search(reason) is not None


def scan_refusals(text: str) -> list[RefusalNotice]:
    notices: list[RefusalNotice] = []
    for m in _REFUSAL.finditer(text):
        reason = m.group(3)
        if is_environment_reason(reason):
            continue
        notices.append(RefusalNotice(callee=m.group(1), caller=m.group(2), reason=reason))
    return notices
