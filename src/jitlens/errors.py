from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jitlens.model.resolver import ResolveFailure


class TraceError(Exception):
    """Base class for all fatal trace problems."""


class MalformedTraceError(TraceError):
    def __init__(self, stream: str, snippet: str) -> None:
        self.stream = stream
        self.snippet = snippet
        super().__init__(f"Malformed {stream} block: {snippet[:80]!r}")


class UnresolvedReferenceError(TraceError):
    def __init__(self, failure: ResolveFailure, context: str = "") -> None:
        self.failure = failure
        self.context = context
        message = f"No {failure.kind}: {failure.key}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class DuplicateInlineError(TraceError):
    def __init__(self, owner_id: int, second_id: int) -> None:
        self.owner_id = owner_id
        self.second_id = second_id
        super().__init__(f"Inline id {second_id} registered twice in compiled version {owner_id}")


class TraceProcessError(TraceError):
    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"Traced command exited with {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InlineCycleError(TraceError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Inline tree is not a forest: {detail}")
