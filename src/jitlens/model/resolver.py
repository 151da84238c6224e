from __future__ import annotations

from dataclasses import dataclass

from jitlens.errors import DuplicateInlineError
from jitlens.model.entities import Function, FunctionVersion, SourceFile, TraceModel


@dataclass(frozen=True)
class ResolveFailure:
    kind: str
    key: str


class Resolver:
    def __init__(self, model: TraceModel) -> None:
        self.model = model

    def register_file(self, path: str) -> SourceFile:
        source_file = self.model.files.get(path)
        if source_file is None:
            source_file = SourceFile(path=path)
            self.model.files[path] = source_file
        return source_file

    def register_function(self, source_file: SourceFile, name: str) -> Function:
        fn = source_file.functions.get(name)
        if fn is None:
            fn = Function(name=name, file=source_file.path)
            source_file.functions[name] = fn
            self.model.functions[name] = fn
        return fn

    def register_version(
        self, source_file: SourceFile, fn: Function, compile_id: int, code: str
    ) -> FunctionVersion:
        version = self.model.add_version(source_file.path, fn.name, code, compile_id=compile_id)
        fn.versions.append(version.handle)
        fn.versions_by_id[compile_id] = version.handle
        source_file.versions_by_id[compile_id] = version.handle
        return version

    def register_inline(
        self, owner: FunctionVersion, name: str, second_id: int, code: str
    ) -> FunctionVersion:
        if second_id in owner.inline_by_second_id:
            raise DuplicateInlineError(owner.compile_id or 0, second_id)
        version = self.model.add_version(
            owner.file, name, code, second_id=second_id, owner=owner.handle
        )
        owner.inline_by_second_id[second_id] = version.handle
        return version

    def file(self, path: str) -> SourceFile | ResolveFailure:
        source_file = self.model.files.get(path)
        if source_file is None:
            return ResolveFailure("file", path)
        return source_file

    def function(self, path: str, name: str) -> Function | ResolveFailure:
        source_file = self.file(path)
        if isinstance(source_file, ResolveFailure):
            return source_file
        fn = source_file.functions.get(name)
        if fn is None:
            return ResolveFailure("function", f"{path}:{name}")
        return fn

    def file_version(self, path: str, compile_id: int) -> FunctionVersion | ResolveFailure:
        source_file = self.file(path)
        if isinstance(source_file, ResolveFailure):
            return source_file
        handle = source_file.versions_by_id.get(compile_id)
        if handle is None:
            return ResolveFailure("version", f"{path}#{compile_id}")
        return self.model.version(handle)

    def function_version(self, path: str, name: str, compile_id: int) -> FunctionVersion | ResolveFailure:
        fn = self.function(path, name)
        if isinstance(fn, ResolveFailure):
            return fn
        handle = fn.versions_by_id.get(compile_id)
        if handle is None:
            return ResolveFailure("version", f"{path}:{name}#{compile_id}")
        return self.model.version(handle)

    def inline_child(self, owner: FunctionVersion, second_id: int) -> FunctionVersion | ResolveFailure:
        """Resolve a secondary id within ``owner``; 0 is the owner itself."""
        if second_id == 0:
            return owner
        handle = owner.inline_by_second_id.get(second_id)
        if handle is None:
            return ResolveFailure("inline", f"{owner.name}#{owner.compile_id}/{second_id}")
        return self.model.version(handle)

    def function_by_name(self, name: str) -> Function | None:
        return self.model.functions.get(name)
