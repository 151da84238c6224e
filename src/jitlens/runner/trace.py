from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from jitlens.config.schema import JitLensConfig
from jitlens.errors import TraceProcessError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceTexts:
    code: str
    ir: str
    log: str


def build_command(cfg: JitLensConfig, script_args: list[str]) -> list[str]:
    return [
        cfg.node,
        *cfg.trace_flags,
        f"--redirect-code-traces-to={cfg.code_trace_file}",
        f"--trace_hydrogen_file={cfg.ir_trace_file}",
        *script_args,
    ]


def run_traced(workdir: Path, cfg: JitLensConfig, script_args: list[str]) -> Path:
    """Run the script under the trace flags and save its combined output.

    Raises :class:`TraceProcessError` if the process cannot be started, times
    out, or exits non-zero; nothing is parsed in that case.
    """
    command = build_command(cfg, script_args)
    log.info("Running %s", " ".join(command))
    try:
        p = subprocess.run(
            command,
            cwd=str(workdir),
            check=False,
            capture_output=True,
            text=True,
            timeout=cfg.timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise TraceProcessError(command, 127, str(exc)) from exc
    except subprocess.TimeoutExpired as exc:
        raise TraceProcessError(command, -1, f"timed out after {exc.timeout}s") from exc
    if p.returncode != 0:
        raise TraceProcessError(command, p.returncode, p.stderr or "")
    log_path = workdir / cfg.log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.write_text((p.stdout or "") + (p.stderr or ""), encoding="utf-8")
    log.debug("Wrote run log to %s", log_path)
    return log_path


def read_trace_texts(workdir: Path, cfg: JitLensConfig) -> TraceTexts:
    def read(name: str) -> str:
        return (workdir / name).read_text(encoding="utf-8", errors="replace")

    return TraceTexts(
        code=read(cfg.code_trace_file),
        ir=read(cfg.ir_trace_file),
        log=read(cfg.log_file),
    )
