import argparse
import asyncio
import os
import sys

from core.builder import BuildFailure, run
from core.cleanup import cleanup
from core.errors import ConfigurationError
from core.log import log, set_verbose
from core.metadata import resolve


def build_package(package_root, allow_failures=False):
    """Clean, resolve and build one package. Returns the process exit status."""
    cleanup(package_root)
    metadata = resolve(package_root)
    results = asyncio.run(run(metadata))

    failed = [r for r in results if isinstance(r, BuildFailure)]
    if failed:
        log(f"❯ {len(failed)} of {len(results)} bundle(s) failed")
        if not allow_failures:
            return 1
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build an Ensō package into production and development bundles")
    parser.add_argument("--package", help="Package root (default: current directory)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    parser.add_argument("--allow-failures", action="store_true", help="Exit with status 0 even if a bundle fails")
    args = parser.parse_args(argv)

    set_verbose(args.verbose)
    package_root = args.package or os.getcwd()

    try:
        return build_package(package_root, allow_failures=args.allow_failures)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
