# Ensō package builder - core components
"""
Core modules for building an Ensō package into bundles:
- errors: Error types and source validation
- log: Console logging
- config: Manifest and compiler configuration loading
- metadata: Package metadata resolution
- grammar: Lark grammars for Ensō and for config files
- transformer: AST to Python code transformation
- introspection: Declaration stub extraction
- bundler: Import discovery and module ordering
- stages: Pipeline stages
- pipeline: Pipeline assembly per bundle variant
- engine: Module graph bundling and output rendering
- builder: Per-variant builds and their orchestration
- cleanup: Removal of previous build output
"""

from .errors import BuildError, CleanupError, ConfigurationError, EnsoCompileError
from .metadata import OutputVariant, PackageMetadata, resolve

__all__ = [
    'BuildError',
    'CleanupError',
    'ConfigurationError',
    'EnsoCompileError',
    'OutputVariant',
    'PackageMetadata',
    'resolve',
]
