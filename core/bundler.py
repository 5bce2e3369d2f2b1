"""
Module graph helpers for Ensō imports.

Finds `import "...";` directives, resolves relative specifiers and orders the
collected modules so that every module comes after the modules it imports.
"""
import os
import re

from core.log import debug_log

SOURCE_EXTENSION = ".enso"

# Regex to find: import "anything";
IMPORT_PATTERN = re.compile(r'import\s+"([^"]+)"\s*;')


def find_imports(code):
    """Return the import specifiers of a module in source order."""
    return IMPORT_PATTERN.findall(code)


def is_relative(specifier):
    """
    Relative specifiers point at files; bare ones name packages.

    `import "lib.enso";` is relative to the importing file, like
    `import "./lib";` or `import "../shared/util.enso";`.
    """
    return (
        specifier.startswith(("./", "../", "/"))
        or specifier.endswith(SOURCE_EXTENSION)
    )


def resolve_relative(specifier, importer):
    """Resolve a relative specifier against the importing file, or return None."""
    base_dir = os.path.dirname(os.path.abspath(importer))
    path = os.path.normpath(os.path.join(base_dir, specifier))
    return path if os.path.isfile(path) else None


def link_order(entry_id, dependencies):
    """
    Order modules for linking: dependencies first, entry last.

    Args:
        entry_id: Absolute path of the entry module
        dependencies: Mapping of module id to the ids it imports

    Returns:
        List of module ids reachable from the entry, each after its imports.
        A circular import is broken at the edge that closes the cycle.
    """
    order = []
    visited = set()
    active = []

    def visit(module_id):
        if module_id in visited:
            if module_id in active:
                cycle = active[active.index(module_id):] + [module_id]
                debug_log(f"Cycle detected: {' -> '.join(os.path.basename(m) for m in cycle)} skipped")
            return
        visited.add(module_id)
        active.append(module_id)
        for dependency in dependencies.get(module_id, ()):
            visit(dependency)
        active.pop()
        order.append(module_id)

    visit(entry_id)
    return order
