"""Templates for generated jitlens configuration files."""

DEFAULT_CONFIG = """# jitlens configuration (paths are relative to the working directory)
node: "node"
trace_flags:
  - "--trace-inlining"
  - "--trace-hydrogen"
  - "--trace-phase=Z"
  - "--trace-deopt"
  - "--hydrogen-track-positions"
  - "--redirect-code-traces"

# Trace files written by the traced run and read back by the parser
code_trace_file: "code.asm"
ir_trace_file: "hg.cfg"
log_file: "out.txt"

# Outputs
html_path: "ir.html"
json_path:
title: "JIT inlining report"

# Kill the traced run after this many seconds (empty to wait forever)
timeout_seconds:
"""

MINIMAL_CONFIG = """# jitlens configuration (minimal)
node: "node"
html_path: "ir.html"
"""

CONFIG_PRESETS = {
    "full": DEFAULT_CONFIG,
    "minimal": MINIMAL_CONFIG,
}
