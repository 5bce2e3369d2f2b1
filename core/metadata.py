"""
Package metadata resolution.

Derives everything a build needs from the package root: name, entry file,
external dependencies, compiler configuration and the two output variants.
"""
import os
from typing import FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict

from core.bundler import SOURCE_EXTENSION
from core.config import COMPILER_CONFIG_FILE, CompilerConfig, load_compiler_config, load_manifest
from core.errors import ConfigurationError
from core.log import debug_log

OUTPUT_EXTENSION = ".py"


class OutputVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    artifact_file: str
    is_production: bool

    @property
    def mode(self):
        return "production" if self.is_production else "development"


class PackageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    package_name: str
    package_root: str
    entry_file: str
    output_dir: str
    external_dependencies: FrozenSet[str]
    compiler_config_path: str
    compiler_config: CompilerConfig
    output_variants: Tuple[OutputVariant, ...]


def resolve(package_root) -> PackageMetadata:
    """
    Resolve the metadata of the package at `package_root`.

    Raises:
        ConfigurationError: If the manifest or compiler configuration is
            missing or malformed, or `compilerOptions.outDir` is not set
    """
    package_root = os.path.abspath(package_root)

    manifest = load_manifest(package_root)
    compiler_config_path = os.path.join(package_root, COMPILER_CONFIG_FILE)
    compiler_config = load_compiler_config(compiler_config_path)

    package_name = os.path.basename(package_root)
    entry_file = os.path.join(package_root, package_name + SOURCE_EXTENSION)

    out_dir = compiler_config.compiler_options.out_dir
    if not out_dir:
        raise ConfigurationError(f"compilerOptions.outDir is not set in {compiler_config_path}")
    output_dir = os.path.normpath(os.path.join(package_root, out_dir))

    metadata = PackageMetadata(
        package_name=package_name,
        package_root=package_root,
        entry_file=entry_file,
        output_dir=output_dir,
        external_dependencies=manifest.external_dependencies(),
        compiler_config_path=compiler_config_path,
        compiler_config=compiler_config,
        output_variants=(
            OutputVariant(
                artifact_file=os.path.join(output_dir, f"{package_name}.production.min{OUTPUT_EXTENSION}"),
                is_production=True,
            ),
            OutputVariant(
                artifact_file=os.path.join(output_dir, f"{package_name}.development{OUTPUT_EXTENSION}"),
                is_production=False,
            ),
        ),
    )
    debug_log(f"Resolved {package_name}: entry {entry_file}, externals {sorted(metadata.external_dependencies)}")
    return metadata
