from __future__ import annotations

from html import escape
from pathlib import Path

from jitlens.model.entities import Function, TraceModel
from jitlens.report.spans import SpanRenderer

DEFAULT_TITLE = "JIT inlining report"

_STYLE = (
    "<style>"
    "body{font-family:'IBM Plex Sans','Segoe UI',sans-serif;background:#f6f3ee;color:#1f2a2e;"
    "margin:0;padding:24px;}h1{margin:0 0 12px;}"
    ".file-item{background:#ffffff;border-radius:14px;padding:12px 18px;"
    "box-shadow:0 8px 24px rgba(31,42,46,0.08);margin-bottom:18px;}"
    ".file-name{font-weight:600;cursor:pointer;}"
    ".fn-item{margin:10px 0 0 12px;}.fn-name{font-weight:600;color:#2b5f8a;}"
    ".fn-deopt>.fn-name{color:#8c1d18;}"
    ".code{white-space:pre;font-family:'IBM Plex Mono',monospace;font-size:13px;margin:4px 0;}"
    ".toggle-next,.recompile-title{cursor:pointer;}"
    ".recompile-title{color:#5b666a;font-size:12px;}"
    ".inline{border-bottom:1px dashed #2b5f8a;}"
    ".inline-code{display:block;border-left:3px solid #2b5f8a;padding-left:8px;}"
    ".runtime{background:#fde8c8;}.runtime.CallWithDescriptor{background:#e3edf7;}"
    "[did-not-inlined]{background:#f9d7d5;}"
    ".deopt{color:#8c1d18;font-size:13px;}"
    ".hidden{display:none;}"
    "</style>"
)

_SCRIPT = (
    "<script>"
    "document.addEventListener('click',function(e){"
    "var t=e.target.closest('.toggle-next');"
    "if(t&&t.nextElementSibling){t.nextElementSibling.classList.toggle('hidden');}"
    "});"
    "</script>"
)


def _function_html(renderer: SpanRenderer, fn: Function) -> list[str]:
    lines: list[str] = []
    name = escape(fn.name)
    deopt_class = " fn-deopt" if fn.deopted else ""
    lines.append(f'<div class="fn-item{deopt_class}">')
    lines.append(f'<a class="fn-name" href="#{name}" id="{name}">{name}:</a>')
    lines.append('<div class="fn-versions">')
    last = len(fn.versions) - 1
    for idx, handle in enumerate(fn.versions):
        version = renderer.model.version(handle)
        lines.append('<div class="recompile">')
        if len(fn.versions) > 1:
            lines.append('<span class="recompile-title toggle-next">~recompile~</span>')
        hidden = "" if idx == last else "hidden"
        lines.append(f'<div class="{hidden}">{renderer.render(handle)}</div>')
        for reason in version.deopts:
            lines.append(f'<div class="deopt">Deopt: {escape(reason)}</div>')
        lines.append("</div>")
    lines.append("</div></div>")
    return lines


def to_html(model: TraceModel, title: str = DEFAULT_TITLE) -> str:
    renderer = SpanRenderer(model)
    lines: list[str] = []
    lines.append("<!doctype html>")
    lines.append('<html lang="en">')
    lines.append("<head>")
    lines.append('<meta charset="utf-8">')
    lines.append(f"<title>{escape(title)}</title>")
    lines.append(_STYLE)
    lines.append(_SCRIPT)
    lines.append("</head>")
    lines.append("<body>")
    lines.append(f"<h1>{escape(title)}</h1>")
    if not model.files:
        lines.append('<p class="note">No optimized functions found in trace.</p>')
    for source_file in model.files.values():
        lines.append('<div class="file-item">')
        lines.append(f'<div class="file-name toggle-next">{escape(source_file.path)}</div>')
        lines.append('<div class="fn-names">')
        for fn in source_file.functions.values():
            lines.extend(_function_html(renderer, fn))
        lines.append("</div></div>")
    lines.append("</body></html>")
    return "\n".join(lines)


def write_html(model: TraceModel, path: Path, title: str = DEFAULT_TITLE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_html(model, title=title), encoding="utf-8")
