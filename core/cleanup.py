"""
Removal of previous build output.
"""
import glob
import os
import shutil

from core.config import COMPILER_CONFIG_FILE, load_compiler_config
from core.errors import CleanupError
from core.log import debug_log, log

DECLARATION_PATTERN = "*.pyi"


def _inside(path, root):
    return os.path.commonpath([path, root]) == root and path != root


def remove_tree(path, package_root):
    """Delete a file or directory tree; a missing path is not an error."""
    if not _inside(path, package_root):
        raise CleanupError(f"Refusing to remove {path}: not inside {package_root}")
    if not os.path.lexists(path):
        debug_log(f"Nothing to clean at {path}")
        return []
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except OSError as e:
        raise CleanupError(f"Could not remove {path}: {e}") from e
    return [path]


def remove_declarations(directory, package_root):
    """Delete the top-level declaration stubs of a directory inside the package."""
    if os.path.commonpath([directory, package_root]) != package_root:
        raise CleanupError(f"Refusing to remove stubs in {directory}: not inside {package_root}")
    removed = []
    for path in sorted(glob.glob(os.path.join(directory, DECLARATION_PATTERN))):
        try:
            os.remove(path)
        except OSError as e:
            raise CleanupError(f"Could not remove {path}: {e}") from e
        removed.append(path)
    return removed


def cleanup(package_root):
    """
    Remove the output directory and declaration stubs of a previous build.

    Deletion problems are logged and swallowed so that a build can always
    proceed. A missing or broken compiler configuration raises
    ConfigurationError.

    Returns:
        The paths that were removed.
    """
    package_root = os.path.abspath(package_root)
    log(f"❯ Cleanup: {package_root}")
    options = load_compiler_config(os.path.join(package_root, COMPILER_CONFIG_FILE)).compiler_options

    removed = []
    if options.out_dir:
        try:
            removed += remove_tree(os.path.normpath(os.path.join(package_root, options.out_dir)), package_root)
        except CleanupError as error:
            log(f"❯ Cleanup(💥): {error}")
    if options.declaration_dir:
        try:
            removed += remove_declarations(
                os.path.normpath(os.path.join(package_root, options.declaration_dir)), package_root
            )
        except CleanupError as error:
            log(f"❯ Cleanup(💥): {error}")
    return removed
