import json
import os
import sys

import pytest

# Ensure we can import from the parent directory
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.log import set_verbose

DEFAULT_CONFIG = """{
  // Compiler configuration of the test package
  "compilerOptions": {
    "outDir": "dist",
    "declarationDir": "types", /* stubs live apart from bundles */
  },
}
"""

GREETER_SOURCES = {
    "greeter.enso": '''/*!
 * greeter v1.0.0
 * License: MIT
 */
import "helpers.enso";

export struct Greeting {
    text: String,
    loud: Bool
}

export fn greet(name: String) -> Greeting {
    let message = format_greeting(name);
    if __DEV__ {
        print("dev mode");
    }
    return Greeting { text: message, loud: false };
}
''',
    "helpers.enso": '''// helpers for greeter
fn format_greeting(person_name: String) -> String {
    let greeting_prefix = "Hello, ";
    return greeting_prefix + person_name;
}
''',
}


@pytest.fixture(autouse=True)
def quiet_logging():
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def make_package(tmp_path):
    """Factory writing a package directory; returns its root path."""
    def _make(name="greeter", sources=None, manifest=None, config=DEFAULT_CONFIG):
        root = tmp_path / name
        root.mkdir(parents=True)
        if manifest is None:
            manifest = {"name": name, "version": "1.0.0"}
        (root / "enso.json").write_text(json.dumps(manifest))
        if config is not None:
            (root / "ensoconfig.json").write_text(config)
        for rel_path, text in (sources or {}).items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        return str(root)
    return _make


@pytest.fixture
def greeter_package(make_package):
    return make_package("greeter", sources=GREETER_SOURCES)
