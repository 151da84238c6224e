from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class JitLensConfig:
    node: str = "node"
    trace_flags: list[str] = field(
        default_factory=lambda: [
            "--trace-inlining",
            "--trace-hydrogen",
            "--trace-phase=Z",
            "--trace-deopt",
            "--hydrogen-track-positions",
            "--redirect-code-traces",
        ]
    )
    code_trace_file: str = "code.asm"
    ir_trace_file: str = "hg.cfg"
    log_file: str = "out.txt"
    html_path: str = "ir.html"
    json_path: str | None = None
    title: str = "JIT inlining report"
    timeout_seconds: float | None = None
