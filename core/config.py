"""
Package manifest and compiler configuration loading.

The manifest (``enso.json``) is plain JSON. The compiler configuration
(``ensoconfig.json``) follows the looser dialect of compiler config files:
comments and trailing commas are accepted.
"""
import functools
import json
import os
from typing import Dict, FrozenSet, Optional

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import ConfigurationError
from core.grammar import config_grammar

MANIFEST_FILE = "enso.json"
COMPILER_CONFIG_FILE = "ensoconfig.json"


class CompilerOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    out_dir: Optional[str] = Field(default=None, alias="outDir")
    declaration_dir: Optional[str] = Field(default=None, alias="declarationDir")
    declaration: bool = True


class CompilerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    compiler_options: CompilerOptions = Field(default_factory=CompilerOptions, alias="compilerOptions")


class PackageManifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Optional[Dict[str, str]] = None
    peer_dependencies: Optional[Dict[str, str]] = Field(default=None, alias="peerDependencies")

    def external_dependencies(self) -> FrozenSet[str]:
        """Runtime and peer dependency names; these must never be inlined."""
        return frozenset(self.dependencies or {}) | frozenset(self.peer_dependencies or {})


class ConfigTransformer(Transformer):
    """Builds plain Python values from the config parse tree."""

    def string(self, s):
        (token,) = s
        return json.loads(token)

    def number(self, n):
        (token,) = n
        text = str(token)
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)

    def array(self, items):
        return list(items)

    def pair(self, kv):
        return tuple(kv)

    def object(self, pairs):
        return dict(pairs)

    def true(self, _):
        return True

    def false(self, _):
        return False

    def null(self, _):
        return None


@functools.lru_cache(maxsize=None)
def _config_parser():
    return Lark(config_grammar, parser='lalr', transformer=ConfigTransformer())


def parse_config_text(text, path="<config>"):
    """Parse JSON-with-comments text into Python values."""
    try:
        return _config_parser().parse(text)
    except UnexpectedInput as e:
        raise ConfigurationError(
            f"Could not parse {path}: unexpected input at line {e.line}, column {e.column}"
        ) from e


def _read_text(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(f"Missing {os.path.basename(path)}: {path}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e


def load_compiler_config(config_path):
    """Read and validate the compiler configuration file."""
    raw = parse_config_text(_read_text(config_path), config_path)
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain an object")
    try:
        return CompilerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid compiler configuration in {config_path}:\n{e}") from e


def load_manifest(package_root):
    """Read and validate the package manifest."""
    manifest_path = os.path.join(package_root, MANIFEST_FILE)
    text = _read_text(manifest_path)
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse {manifest_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{manifest_path} must contain an object")
    try:
        return PackageManifest.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid manifest {manifest_path}:\n{e}") from e
