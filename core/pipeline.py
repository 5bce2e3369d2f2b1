"""
Pipeline assembly.

The pipeline for a bundle variant is a declarative, ordered list of tagged
stages. Order matters: flags are bound before compilation so the compiler
can fold dead branches, and the minifier only ever sees compiled code.
"""
import os
from typing import Annotated, List, Union

from pydantic import Field, TypeAdapter

from core.stages import CompileEnso, Minify, ReplaceFlags, ResolveModules, StripBanner

CACHE_DIR = ".enso_cache"

PipelineStage = Annotated[
    Union[StripBanner, ResolveModules, ReplaceFlags, CompileEnso, Minify],
    Field(discriminator="kind"),
]

_PIPELINE = TypeAdapter(List[PipelineStage])

PRODUCTION_MINIFIER_OPTIONS = {
    "safe_dynamic_access": True,
    "passes": 3,
    "keep_exported_names": True,
    "drop_console": False,
    "comments": False,
}


def assemble(is_production, compiler_config_path):
    """
    Build the ordered stage list for one bundle variant.

    Args:
        is_production: Whether the variant is the minified production bundle
        compiler_config_path: Path of the package's compiler configuration

    Returns:
        strip-banner, resolve-modules, replace-flags, compile and, for
        production only, minify.
    """
    mode = "production" if is_production else "development"
    config_dir = os.path.dirname(compiler_config_path)

    stages = [
        {"kind": "strip-banner"},
        {"kind": "resolve-modules"},
        {"kind": "replace-flags", "values": {"__DEV__": not is_production, "__PROD__": is_production}},
        {
            "kind": "compile",
            "config_path": compiler_config_path,
            "cache_dir": os.path.join(config_dir, CACHE_DIR, mode),
            "clean": True,
            "use_config_declaration_dir": True,
        },
    ]
    if is_production:
        stages.append({"kind": "minify", "options": PRODUCTION_MINIFIER_OPTIONS})

    return _PIPELINE.validate_python(stages)
