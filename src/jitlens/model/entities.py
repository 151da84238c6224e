from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RuntimeAnnotation:
    pos: int
    kind: str


@dataclass
class FunctionVersion:
    handle: int
    file: str
    name: str
    code: str
    compile_id: int | None = None
    second_id: int = 0
    owner: int | None = None
    inline_pos: int = 0
    inlines: list[int] = field(default_factory=list)
    deopts: list[str] = field(default_factory=list)
    runtime: list[RuntimeAnnotation] = field(default_factory=list)
    inline_by_second_id: dict[int, int] = field(default_factory=dict)

    @property
    def is_inline(self) -> bool:
        return self.owner is not None


@dataclass
class Function:
    name: str
    file: str
    deopted: bool = False
    versions: list[int] = field(default_factory=list)
    versions_by_id: dict[int, int] = field(default_factory=dict)
    did_not_inline_reason: str = ""

    @property
    def last_version(self) -> int | None:
        if not self.versions:
            return None
        return self.versions[-1]


@dataclass
class SourceFile:
    path: str
    functions: dict[str, Function] = field(default_factory=dict)
    versions_by_id: dict[int, int] = field(default_factory=dict)


@dataclass
class TraceModel:
    files: dict[str, SourceFile] = field(default_factory=dict)
    functions: dict[str, Function] = field(default_factory=dict)
    versions: list[FunctionVersion] = field(default_factory=list)

    def add_version(self, file: str, name: str, code: str, **kwargs: object) -> FunctionVersion:
        version = FunctionVersion(handle=len(self.versions), file=file, name=name, code=code, **kwargs)
        self.versions.append(version)
        return version

    def version(self, handle: int) -> FunctionVersion:
        return self.versions[handle]

    def iter_functions(self) -> Iterator[tuple[SourceFile, Function]]:
        for source_file in self.files.values():
            for fn in source_file.functions.values():
                yield source_file, fn

    def descendants(self, handle: int) -> Iterator[FunctionVersion]:
        stack = list(reversed(self.versions[handle].inlines))
        while stack:
            child = self.versions[stack.pop()]
            yield child
            stack.extend(reversed(child.inlines))

    def forest_errors(self) -> list[str]:
        """Check that inline edges form a forest rooted at top-level versions."""
        errors: list[str] = []
        parents: dict[int, int] = {}
        for version in self.versions:
            for child in version.inlines:
                if child in parents:
                    errors.append(f"version {child} inlined into both {parents[child]} and {version.handle}")
                    continue
                parents[child] = version.handle
                if not self.versions[child].is_inline:
                    errors.append(f"top-level version {child} listed as inline child of {version.handle}")
        for child in parents:
            seen = {child}
            current = child
            while current in parents:
                current = parents[current]
                if current in seen:
                    errors.append(f"inline cycle through version {child}")
                    break
                seen.add(current)
        return errors
