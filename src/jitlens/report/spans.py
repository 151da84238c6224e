from __future__ import annotations

import re
from dataclasses import dataclass
from html import escape

from jitlens.model.entities import FunctionVersion, RuntimeAnnotation, TraceModel

LOOKAHEAD = 100
FALLBACK_SPAN = 5

CALL_DESCRIPTOR = "CallWithDescriptor"
_CALL_DESCRIPTOR_ALIASES = {"InvokeFunction", "CallRuntime"}

_TOKEN = re.compile(r"(new |[.=\[ !&<>^%+\-|]*)?\w+\]?", re.ASCII)
_ESCAPES = {"<": "&lt;", ">": "&gt;"}


@dataclass(frozen=True)
class Replacement:
    start: int
    end: int
    text: str


def find_end(code: str, start: int) -> int:
    m = _TOKEN.match(code[start : start + LOOKAHEAD])
    if m:
        return start + len(m.group(0))
    return start + FALLBACK_SPAN


def escape_code(text: str) -> str:
    return text.replace(">", "&gt;").replace("<", "&lt;")


def apply_replacements(code: str, replacements: list[Replacement]) -> str:
    ordered = sorted(replacements, key=lambda r: r.start)
    shift = 0
    prev_end = -1
    for replacement in ordered:
        pos = replacement.start + shift
        end = replacement.end + shift
        if prev_end > pos:
            continue
        code = code[:pos] + replacement.text + code[end:]
        diff = len(replacement.text) - (end - pos)
        shift += diff
        prev_end = end + diff
    return code


def _indent_before(code: str, pos: int) -> str:
    newline = code.rfind("\n", 0, pos)
    return " " * (pos - newline - 1)


def _escape_replacements(code: str) -> list[Replacement]:
    return [
        Replacement(start=i, end=i + 1, text=_ESCAPES[ch])
        for i, ch in enumerate(code)
        if ch in _ESCAPES
    ]


def display_kind(kind: str) -> str:
    if kind in _CALL_DESCRIPTOR_ALIASES:
        return CALL_DESCRIPTOR
    return kind


class SpanRenderer:
    def __init__(self, model: TraceModel) -> None:
        self.model = model

    def _inline_replacement(self, code: str, child: FunctionVersion) -> Replacement:
        pos = child.inline_pos
        end = find_end(code, pos)
        sub = escape_code(code[pos:end])
        body = self.render(child.handle) + _indent_before(code, end)
        text = (
            f'<span class="inline toggle-next" data-title="Show inlined">{sub}</span>'
            f'<span class="inline-code hidden">{body}</span>'
        )
        return Replacement(start=pos, end=end, text=text)

    def _runtime_replacement(self, code: str, annotation: RuntimeAnnotation) -> Replacement:
        pos = annotation.pos
        end = find_end(code, pos)
        call_site = code[pos:end]
        kind = display_kind(annotation.kind)
        text = (
            f'<span class="runtime {escape(kind)}" data-title="{escape(kind)}">'
            f"{escape_code(call_site)}</span>"
        )
        if kind == CALL_DESCRIPTOR:
            target = self.model.functions.get(call_site)
            if target is not None:
                tooltip = ""
                if target.did_not_inline_reason:
                    reason = escape(target.did_not_inline_reason)
                    tooltip = f' did-not-inlined data-title="Did not inline: {reason}"'
                name = escape(call_site)
                text = f'<a class="runtime {kind}"{tooltip} href="#{name}">{name}</a>'
        return Replacement(start=pos, end=end, text=text)

    def replacements(self, version: FunctionVersion) -> list[Replacement]:
        code = version.code
        out = _escape_replacements(code)
        for handle in version.inlines:
            out.append(self._inline_replacement(code, self.model.version(handle)))
        for annotation in version.runtime:
            out.append(self._runtime_replacement(code, annotation))
        return out

    def render(self, handle: int) -> str:
        version = self.model.version(handle)
        body = apply_replacements(version.code, self.replacements(version))
        return f'<div class="code">{body}</div>'


def render_version(model: TraceModel, handle: int) -> str:
    return SpanRenderer(model).render(handle)
