"""
Pipeline stages.

Each stage is a small pydantic model tagged by ``kind``; its fields are the
stage's configuration and its methods are the bundling hooks it takes part
in (see ``core.engine``). A hook returning None means "not handled".
"""
import os
import re
import shutil
import tempfile
from typing import Dict, Literal, Tuple

import python_minifier
from pydantic import BaseModel, Field, PrivateAttr

from compiler import compile_source, create_parser, extract_declarations
from core.bundler import SOURCE_EXTENSION, is_relative
from core.config import load_compiler_config
from core.log import debug_log

# A leading block comment, or a run of leading line comments, is a banner.
BANNER_PATTERN = re.compile(r"\A\s*(?:/\*[\s\S]*?\*/|(?:[ \t]*(?://|#)[^\n]*(?:\n|\Z))+)\s*")


class Stage(BaseModel):
    kind: str

    def build_start(self):
        pass

    def resolve_id(self, specifier, importer):
        return None

    def transform(self, code, module_id):
        return None

    def compile_module(self, code, module_id):
        return None

    def render_chunk(self, code, chunk):
        return None


class StripBanner(Stage):
    """Remove the license/comment banner at the top of every module."""
    kind: Literal["strip-banner"] = "strip-banner"

    def transform(self, code, module_id):
        match = BANNER_PATTERN.match(code)
        if not match or not match.group(0).strip():
            return None
        return code[match.end():]


class ResolveModules(Stage):
    """
    Resolve import specifiers to module files.

    Relative specifiers may omit the extension or point at a directory with an
    ``index`` module. Bare specifiers are looked up in ``enso_modules``
    directories, starting beside the importer and walking up.
    """
    kind: Literal["resolve-modules"] = "resolve-modules"
    extensions: Tuple[str, ...] = (SOURCE_EXTENSION,)
    modules_dir: str = "enso_modules"

    def resolve_id(self, specifier, importer):
        directory = os.path.dirname(os.path.abspath(importer))
        if is_relative(specifier):
            return self._resolve_file(os.path.normpath(os.path.join(directory, specifier)))
        return self._resolve_package(specifier, directory)

    def _resolve_file(self, base):
        candidates = [base]
        candidates += [base + ext for ext in self.extensions]
        candidates += [os.path.join(base, "index" + ext) for ext in self.extensions]
        for candidate in candidates:
            if os.path.isfile(candidate):
                return candidate
        return None

    def _resolve_package(self, name, directory):
        while True:
            package_dir = os.path.join(directory, self.modules_dir, name)
            resolved = self._resolve_file(package_dir)
            if resolved is None:
                resolved = self._resolve_file(os.path.join(package_dir, os.path.basename(name)))
            if resolved is not None:
                return resolved
            parent = os.path.dirname(directory)
            if parent == directory:
                return None
            directory = parent


class ReplaceFlags(Stage):
    """Bind build flags such as ``__DEV__`` to boolean literals."""
    kind: Literal["replace-flags"] = "replace-flags"
    values: Dict[str, bool] = {}

    def transform(self, code, module_id):
        if not self.values:
            return None
        names = sorted(self.values, key=len, reverse=True)
        pattern = re.compile(r"\b(" + "|".join(re.escape(n) for n in names) + r")\b")
        return pattern.sub(lambda m: "true" if self.values[m.group(1)] else "false", code)


def _write_text(path, text):
    """Write a file atomically; sibling builds may emit the same stub."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class CompileEnso(Stage):
    """
    Compile Ensō modules to Python.

    Declarations of exported names are written as ``.pyi`` stubs to the
    configured ``declarationDir`` (or ``outDir``). Every compiled module is
    also kept in ``cache_dir``, which ``clean`` wipes at build start.
    """
    kind: Literal["compile"] = "compile"
    config_path: str
    cache_dir: str
    clean: bool = True
    use_config_declaration_dir: bool = True
    modules_dir: str = "enso_modules"

    _parser = PrivateAttr(default=None)
    _declaration_dir = PrivateAttr(default=None)

    @property
    def root(self):
        return os.path.dirname(os.path.abspath(self.config_path))

    def build_start(self):
        options = load_compiler_config(self.config_path).compiler_options
        self._declaration_dir = None
        if options.declaration:
            if self.use_config_declaration_dir and options.declaration_dir:
                self._declaration_dir = os.path.join(self.root, options.declaration_dir)
            elif options.out_dir:
                self._declaration_dir = os.path.join(self.root, options.out_dir)

        if self.clean and os.path.isdir(self.cache_dir):
            debug_log(f"Clearing compile cache {self.cache_dir}")
            shutil.rmtree(self.cache_dir)
        os.makedirs(self.cache_dir, exist_ok=True)
        self._parser = create_parser()

    def _relative_stem(self, module_id):
        """Path of the module relative to the package, without extension; None outside it."""
        rel = os.path.relpath(module_id, self.root)
        first = rel.split(os.sep)[0]
        if first in ("..", self.modules_dir):
            return None
        return os.path.splitext(rel)[0]

    def compile_module(self, code, module_id):
        if self._parser is None:
            self.build_start()
        compiled = compile_source(code, module_id=module_id, parser=self._parser)

        stem = self._relative_stem(module_id)
        cache_name = stem if stem is not None else os.path.splitext(os.path.basename(module_id))[0]
        _write_text(os.path.join(self.cache_dir, cache_name + ".py"), compiled.code + "\n")

        if self._declaration_dir and stem is not None:
            stub = extract_declarations(code, module_id=module_id, parser=self._parser)
            if stub:
                declaration_file = os.path.join(self._declaration_dir, stem + ".pyi")
                debug_log(f"Emitting declarations {declaration_file}")
                _write_text(declaration_file, stub)
        return compiled


class MinifierOptions(BaseModel):
    safe_dynamic_access: bool = True
    passes: int = 3
    keep_exported_names: bool = True
    drop_console: bool = False
    comments: bool = False


class Minify(Stage):
    """Compress and mangle the linked bundle with python-minifier."""
    kind: Literal["minify"] = "minify"
    options: MinifierOptions = Field(default_factory=MinifierOptions)

    def render_chunk(self, code, chunk):
        options = self.options
        preserved = list(chunk.exports) + ["__all__"] if options.keep_exported_names else []
        output = code
        for index in range(max(options.passes, 1)):
            minified = python_minifier.minify(
                output,
                filename=chunk.entry_id,
                remove_annotations=python_minifier.RemoveAnnotationsOptions(),
                remove_literal_statements=not options.comments,
                hoist_literals=True,
                rename_locals=True,
                rename_globals=True,
                preserve_globals=preserved,
                remove_object_base=not options.safe_dynamic_access,
                convert_posargs_to_args=not options.safe_dynamic_access,
                remove_asserts=False,
                remove_debug=options.drop_console,
            )
            debug_log(f"Minifier pass {index + 1}: {len(output)} -> {len(minified)} bytes")
            if minified == output:
                break
            output = minified
        return output
