from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InlinePlacement:
    second_id: int
    parent_second_id: int
    pos: int


@dataclass(frozen=True)
class SourceBlock:
    file: str
    name: str
    compile_id: int
    second_id: int
    code: str
    deopts: list[str] = field(default_factory=list)
    placement: InlinePlacement | None = None

    @property
    def is_inline(self) -> bool:
        return self.second_id != 0


@dataclass(frozen=True)
class ChangeAnnotation:
    kind: str
    pos: int
    inline_id: int | None = None


@dataclass(frozen=True)
class IRBlock:
    file: str
    name: str
    compile_id: int
    changes: list[ChangeAnnotation] = field(default_factory=list)


@dataclass(frozen=True)
class RefusalNotice:
    callee: str
    caller: str
    reason: str
