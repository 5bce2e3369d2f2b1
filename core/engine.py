"""
Bundling engine.

Builds the module graph of an entry file through a list of pipeline stages
and links the compiled modules into one Python module. Stages take part
through hooks, called in pipeline order:

- ``build_start()`` once before anything is loaded
- ``resolve_id(specifier, importer)`` until one returns a module id
- ``transform(code, module_id)`` on every loaded module's source
- ``compile_module(code, module_id)`` until one returns a CompiledModule
- ``render_chunk(code, chunk)`` on the linked output, before it is written

Blocking work runs in the default executor so builds of several bundles can
interleave on one event loop.
"""
import asyncio
import os
from typing import List

from pydantic import BaseModel

from core.bundler import find_imports, is_relative, link_order, resolve_relative
from core.errors import BuildError
from core.log import debug_log, warn

OUTPUT_FORMATS = ("module",)


class ModuleInfo(BaseModel):
    id: str
    code: str
    dependencies: List[str] = []
    externals: List[str] = []


class RenderedChunk(BaseModel):
    """What render_chunk hooks get to know about the linked output."""
    entry_id: str
    exports: List[str] = []
    externals: List[str] = []


class OutputChunk(BaseModel):
    file: str
    code: str
    exports: List[str] = []


def external_module_name(specifier):
    """Python module name for an external dependency (`left-pad` -> `left_pad`, `@scope/pkg` -> `scope.pkg`)."""
    module_name = specifier.lstrip("@").replace("-", "_").replace("/", ".")
    if not all(part.isidentifier() for part in module_name.split(".")):
        raise BuildError(f"External dependency '{specifier}' has no valid Python module name")
    return module_name


def render_external_import(specifier, interop=False):
    module_name = external_module_name(specifier)
    if not interop or "." in module_name:
        return f"import {module_name}"
    alias = f"_{module_name}_module"
    return (
        f"import {module_name} as {alias}\n"
        f"{module_name} = getattr({alias}, 'default', {alias})"
    )


def _load(module_id):
    try:
        with open(module_id, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError as e:
        raise BuildError(f"Could not load {module_id}: file not found") from e
    except OSError as e:
        raise BuildError(f"Could not load {module_id}: {e}") from e


def _write(file, code):
    directory = os.path.dirname(file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file, 'w', encoding='utf-8') as f:
        f.write(code)


class Bundle:
    """A resolved and compiled module graph, ready to be rendered."""

    def __init__(self, entry_id, order, compiled, externals, stages):
        self.entry_id = entry_id
        self.order = order
        self.compiled = compiled
        self.externals = externals
        self.stages = stages

    @property
    def exports(self):
        return list(self.compiled[self.entry_id].exports)

    def _link(self, interop):
        header = []
        for module_id in self.order:
            for line in self.compiled[module_id].header:
                if line not in header:
                    header.append(line)

        sections = []
        if header:
            sections.append("\n".join(header))
        if self.externals:
            sections.append("\n".join(render_external_import(s, interop) for s in self.externals))
        for module_id in self.order:
            code = self.compiled[module_id].code
            if code.strip():
                sections.append(code)
        if self.exports:
            sections.append(f"__all__ = {self.exports!r}")
        return "\n\n".join(sections) + "\n"

    async def generate(self, format="module", interop=False):
        """Link the modules and run render_chunk hooks; nothing is written."""
        if format not in OUTPUT_FORMATS:
            raise BuildError(f"Unsupported output format '{format}'")

        code = self._link(interop)
        chunk = RenderedChunk(entry_id=self.entry_id, exports=self.exports, externals=self.externals)
        for stage in self.stages:
            rendered = await asyncio.to_thread(stage.render_chunk, code, chunk)
            if rendered is not None:
                code = rendered
        return code

    async def write(self, file, format="module", interop=False):
        """Render the bundle and write it as exactly one file."""
        code = await self.generate(format=format, interop=interop)
        try:
            await asyncio.to_thread(_write, file, code)
        except OSError as e:
            raise BuildError(f"Could not write {file}: {e}") from e
        return OutputChunk(file=file, code=code, exports=self.exports)


async def _resolve(specifier, importer, stages, external):
    """Return (module_id, is_external) for one import specifier."""
    if specifier in external:
        return specifier, True

    for stage in stages:
        resolved = await asyncio.to_thread(stage.resolve_id, specifier, importer)
        if resolved is not None:
            return resolved, False

    if is_relative(specifier):
        resolved = await asyncio.to_thread(resolve_relative, specifier, importer)
        if resolved is None:
            raise BuildError(f'Could not resolve "{specifier}" from {importer}')
        return resolved, False

    warn(f"Unresolved dependency '{specifier}' (imported by {os.path.basename(importer)}) treated as external")
    return specifier, True


def _compile(stages, module):
    for stage in stages:
        compiled = stage.compile_module(module.code, module.id)
        if compiled is not None:
            return compiled
    raise BuildError(f"No pipeline stage can compile {module.id}")


async def bundle(input_file, stages, external=()) -> Bundle:
    """Resolve, transform and compile the module graph of `input_file`."""
    external = frozenset(external)
    entry_id = os.path.abspath(input_file)

    for stage in stages:
        await asyncio.to_thread(stage.build_start)

    modules = {}
    externals = []
    pending = [entry_id]
    while pending:
        module_id = pending.pop(0)
        if module_id in modules:
            continue

        code = await asyncio.to_thread(_load, module_id)
        for stage in stages:
            transformed = stage.transform(code, module_id)
            if transformed is not None:
                code = transformed

        module = ModuleInfo(id=module_id, code=code)
        for specifier in find_imports(code):
            resolved, is_external = await _resolve(specifier, module_id, stages, external)
            if is_external:
                module.externals.append(resolved)
                if resolved not in externals:
                    externals.append(resolved)
            else:
                debug_log(f"Resolved \"{specifier}\" -> {resolved}")
                module.dependencies.append(resolved)
                pending.append(resolved)
        modules[module_id] = module

    order = link_order(entry_id, {m.id: m.dependencies for m in modules.values()})

    compiled = {}
    for module_id in order:
        compiled[module_id] = await asyncio.to_thread(_compile, stages, modules[module_id])

    return Bundle(entry_id, order, compiled, externals, stages)
