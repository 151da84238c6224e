from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

import yaml

from jitlens import __version__
from jitlens.config.loader import CONFIG_FILENAME, load_config
from jitlens.config.schema import JitLensConfig
from jitlens.config.templates import CONFIG_PRESETS
from jitlens.config.validate import validate_config_paths
from jitlens.errors import TraceError
from jitlens.model.builder import build_model
from jitlens.model.entities import TraceModel
from jitlens.report.format_html import write_html
from jitlens.report.format_json import write_json
from jitlens.runner.trace import read_trace_texts, run_traced
from jitlens.util.logging import setup_logging

log = logging.getLogger(__name__)

EXIT_TRACE_ERROR = 2


def _resolve_path(workdir: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workdir / path
    return path


def _config_for_args(args: argparse.Namespace) -> tuple[Path, JitLensConfig]:
    workdir = Path(args.path).resolve()
    config_paths = [Path(p) for p in args.config] if args.config else None
    cfg = load_config(workdir, config_paths)
    overrides: dict[str, object] = {}
    for key in ("code_trace_file", "ir_trace_file", "log_file", "html_path", "json_path", "title", "node"):
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value
    if getattr(args, "timeout", None) is not None:
        overrides["timeout_seconds"] = args.timeout
    if overrides:
        cfg = dataclasses.replace(cfg, **overrides)
    return workdir, cfg


def _build_and_write(workdir: Path, cfg: JitLensConfig) -> TraceModel:
    texts = read_trace_texts(workdir, cfg)
    model = build_model(texts.code, texts.ir, texts.log)
    html_path = _resolve_path(workdir, cfg.html_path)
    write_html(model, html_path, title=cfg.title)
    log.info("Wrote HTML report to %s", html_path)
    if cfg.json_path:
        json_path = _resolve_path(workdir, cfg.json_path)
        write_json(model, json_path)
        log.info("Wrote JSON report to %s", json_path)
    return model


def _summarize(model: TraceModel) -> None:
    deopted = sum(1 for _, fn in model.iter_functions() if fn.deopted)
    log.info(
        "%d files, %d functions (%d deopted), %d compiled versions",
        len(model.files),
        len(model.functions),
        deopted,
        sum(1 for v in model.versions if not v.is_inline),
    )


def cmd_parse(args: argparse.Namespace) -> int:
    workdir, cfg = _config_for_args(args)
    try:
        model = _build_and_write(workdir, cfg)
    except OSError as exc:
        log.error("Cannot read trace files: %s", exc)
        return 1
    except TraceError as exc:
        log.error("%s", exc)
        return EXIT_TRACE_ERROR
    _summarize(model)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    workdir, cfg = _config_for_args(args)
    script_args = list(args.script)
    if script_args and script_args[0] == "--":
        script_args = script_args[1:]
    if not script_args:
        log.error("No script given to run under trace.")
        return 1
    try:
        run_traced(workdir, cfg, script_args)
        model = _build_and_write(workdir, cfg)
    except OSError as exc:
        log.error("Cannot read trace files: %s", exc)
        return 1
    except TraceError as exc:
        log.error("%s", exc)
        return EXIT_TRACE_ERROR
    _summarize(model)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    workdir = Path(args.path).resolve()
    target = _resolve_path(workdir, args.output) if args.output else workdir / CONFIG_FILENAME
    preset = str(args.preset or "full").lower()
    template = CONFIG_PRESETS.get(preset, CONFIG_PRESETS["full"])
    if target.exists() and not args.force:
        log.error("Config %s already exists. Use --force to overwrite.", target)
        return 1
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(template, encoding="utf-8")
    log.info("Wrote config to %s", target)
    return 0


def cmd_config_show(args: argparse.Namespace) -> int:
    workdir = Path(args.path).resolve()
    config_paths = [Path(p) for p in args.config] if args.config else None
    cfg = load_config(workdir, config_paths)
    text = yaml.safe_dump(dataclasses.asdict(cfg), sort_keys=False)
    if args.output:
        out_path = _resolve_path(workdir, args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


def cmd_config_validate(args: argparse.Namespace) -> int:
    workdir = Path(args.path).resolve()
    if args.config:
        config_paths = [_resolve_path(workdir, p) for p in args.config]
    else:
        config_paths = [workdir / CONFIG_FILENAME]
        if not config_paths[0].exists():
            log.error("Config %s not found.", config_paths[0])
            return 1
    errors = validate_config_paths(config_paths)
    if errors:
        for err in errors:
            log.error("%s", err)
        return 1
    log.info("Config valid.")
    return 0


def _add_config_arg(a: argparse.ArgumentParser) -> None:
    a.add_argument(
        "--config",
        action="append",
        default=None,
        help="Config file path (repeatable, relative to the working directory or absolute)",
    )


def _add_report_args(a: argparse.ArgumentParser) -> None:
    _add_config_arg(a)
    a.add_argument("--code", dest="code_trace_file", default=None, help="Function source dump (default: code.asm)")
    a.add_argument("--ir", dest="ir_trace_file", default=None, help="Hydrogen IR log (default: hg.cfg)")
    a.add_argument("--log", dest="log_file", default=None, help="Captured run output (default: out.txt)")
    a.add_argument("--html", dest="html_path", default=None, help="Write HTML report to path (default: ir.html)")
    a.add_argument("--json", dest="json_path", default=None, help="Write JSON summary to path")
    a.add_argument("--title", default=None, help="Report title")


def _add_init_args(a: argparse.ArgumentParser) -> None:
    a.add_argument("path", nargs="?", default=".", help="Working directory (default: .)")
    a.add_argument("--output", default=None, help=f"Output path (default: {CONFIG_FILENAME})")
    a.add_argument(
        "--preset",
        default="full",
        choices=sorted(CONFIG_PRESETS.keys()),
        help="Template preset (default: full)",
    )
    a.add_argument("--force", action="store_true", help="Overwrite existing config if present")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jitlens", description="jitlens  Annotated view of V8 inlining and deopts")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Run a script under node trace flags and build the report")
    r.add_argument("--path", default=".", help="Working directory for the traced run (default: .)")
    _add_report_args(r)
    r.add_argument("--node", default=None, help="Node binary (default from config)")
    r.add_argument("--timeout", type=float, default=None, help="Kill the traced run after this many seconds")
    r.add_argument("script", nargs=argparse.REMAINDER, help="Script and arguments passed to node")
    r.set_defaults(func=cmd_run)

    a = sub.add_parser("parse", help="Build the report from existing trace files")
    a.add_argument("path", nargs="?", default=".", help="Directory holding the trace files (default: .)")
    _add_report_args(a)
    a.set_defaults(func=cmd_parse)

    c = sub.add_parser("config", help="Config utilities")
    c_sub = c.add_subparsers(dest="config_cmd", required=True)
    c_show = c_sub.add_parser("show", help="Show merged config")
    c_show.add_argument("path", nargs="?", default=".", help="Working directory (default: .)")
    _add_config_arg(c_show)
    c_show.add_argument("--output", default=None, help="Write output to path instead of stdout")
    c_show.set_defaults(func=cmd_config_show)

    c_validate = c_sub.add_parser("validate", help="Validate config file(s)")
    c_validate.add_argument("path", nargs="?", default=".", help="Working directory (default: .)")
    _add_config_arg(c_validate)
    c_validate.set_defaults(func=cmd_config_validate)

    i = sub.add_parser("init", help="Create a jitlens configuration file")
    _add_init_args(i)
    i.set_defaults(func=cmd_init)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(args.verbose))
    return int(args.func(args))
