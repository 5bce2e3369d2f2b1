"""
Bundle building and output orchestration.

`build` produces one artifact and reports it; `run` starts a build task for
every output variant of a package and waits for all of them. A failing
variant is logged and reported but never affects its siblings.
"""
import asyncio
import gzip
import time
from typing import List, Literal, Union

import humanize
from pydantic import BaseModel, ConfigDict

from core.engine import bundle
from core.log import log
from core.pipeline import assemble


class BuildSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    artifact_file: str
    elapsed_ms: int
    gzip_size: int
    gzip_size_text: str


class BuildFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    artifact_file: str
    error: str


BuildResult = Union[BuildSuccess, BuildFailure]


def gzip_size(code):
    return len(gzip.compress(code.encode("utf-8"), compresslevel=9))


async def build(entry_file, pipeline, external, target, package_name) -> BuildResult:
    """
    Build one bundle variant.

    Args:
        entry_file: Entry module of the package
        pipeline: Stages from `assemble`
        external: Dependency names that must stay imports
        target: The OutputVariant to write
        package_name: Used in log lines

    Returns:
        BuildSuccess with timing and gzip size, or BuildFailure. Errors are
        logged here and never raised.
    """
    mode = "production" if target.is_production else "development"
    log(f"❯ Building(📦): {package_name} ({mode})")
    started = time.perf_counter()
    try:
        result = await bundle(entry_file, pipeline, external)
        output = await result.write(target.artifact_file, format="module", interop=False)
    except Exception as error:
        log(f"❯ Building(💥): {package_name} ({mode}): {error}")
        return BuildFailure(artifact_file=target.artifact_file, error=str(error))

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    size = gzip_size(output.code)
    size_text = humanize.naturalsize(size)
    log(f"❯ Complete(🤘): {target.artifact_file} ({elapsed_ms}ms) [gzip: {size_text}]")
    return BuildSuccess(
        artifact_file=target.artifact_file,
        elapsed_ms=elapsed_ms,
        gzip_size=size,
        gzip_size_text=size_text,
    )


async def run(metadata) -> List[BuildResult]:
    """Build every output variant of a package concurrently."""
    tasks = [
        asyncio.create_task(
            build(
                metadata.entry_file,
                assemble(variant.is_production, metadata.compiler_config_path),
                metadata.external_dependencies,
                variant,
                metadata.package_name,
            )
        )
        for variant in metadata.output_variants
    ]
    return list(await asyncio.gather(*tasks))
