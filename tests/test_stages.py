"""
Tests for the individual pipeline stages.
"""
import os

import pytest

from core.engine import RenderedChunk
from core.errors import EnsoCompileError
from core.stages import CompileEnso, Minify, MinifierOptions, ReplaceFlags, ResolveModules, StripBanner


class TestStripBanner:
    def test_block_banner(self):
        code = '/*!\n * lib v1\n * License: MIT\n */\nlet x = 1;\n'
        assert StripBanner().transform(code, "lib.enso") == "let x = 1;\n"

    def test_line_comment_banner(self):
        code = '// lib v1\n// License: MIT\n\nlet x = 1;\n'
        assert StripBanner().transform(code, "lib.enso") == "let x = 1;\n"

    def test_no_banner(self):
        assert StripBanner().transform('let x = 1; // trailing\n', "lib.enso") is None

    def test_only_the_leading_comment_is_removed(self):
        code = '/* banner */\nlet x = 1;\n/* keep */\n'
        assert StripBanner().transform(code, "lib.enso") == "let x = 1;\n/* keep */\n"


class TestReplaceFlags:
    def test_flags_become_literals(self):
        stage = ReplaceFlags(values={"__DEV__": False, "__PROD__": True})
        code = 'if __DEV__ { print("dev"); } if __PROD__ { print("prod"); }'
        assert stage.transform(code, "m.enso") == 'if false { print("dev"); } if true { print("prod"); }'

    def test_whole_words_only(self):
        stage = ReplaceFlags(values={"__DEV__": True})
        assert stage.transform('let __DEV__X = __DEV__;', "m.enso") == 'let __DEV__X = true;'

    def test_no_values(self):
        assert ReplaceFlags().transform('let x = __DEV__;', "m.enso") is None


class TestResolveModules:
    def test_extension_and_index_lookup(self, tmp_path):
        (tmp_path / "util.enso").write_text("")
        (tmp_path / "shapes").mkdir()
        (tmp_path / "shapes" / "index.enso").write_text("")
        importer = str(tmp_path / "main.enso")
        stage = ResolveModules()
        assert stage.resolve_id("./util", importer) == str(tmp_path / "util.enso")
        assert stage.resolve_id("./shapes", importer) == str(tmp_path / "shapes" / "index.enso")
        assert stage.resolve_id("./nothing", importer) is None

    def test_package_lookup_walks_up(self, tmp_path):
        package = tmp_path / "enso_modules" / "colors"
        package.mkdir(parents=True)
        (package / "colors.enso").write_text("")
        (tmp_path / "src" / "deep").mkdir(parents=True)
        importer = str(tmp_path / "src" / "deep" / "main.enso")
        assert ResolveModules().resolve_id("colors", importer) == str(package / "colors.enso")

    def test_package_index_module(self, tmp_path):
        package = tmp_path / "enso_modules" / "colors"
        package.mkdir(parents=True)
        (package / "index.enso").write_text("")
        importer = str(tmp_path / "main.enso")
        assert ResolveModules().resolve_id("colors", importer) == str(package / "index.enso")


@pytest.fixture
def compile_stage(make_package):
    root = make_package("shapes", sources={})
    return CompileEnso(
        config_path=os.path.join(root, "ensoconfig.json"),
        cache_dir=os.path.join(root, ".enso_cache", "development"),
    )


class TestCompileEnso:
    def test_compiles_and_caches(self, compile_stage):
        compile_stage.build_start()
        module_id = os.path.join(compile_stage.root, "shapes.enso")
        compiled = compile_stage.compile_module('export fn area(w: Int) -> Int { return w * w; }', module_id)
        assert compiled.exports == ["area"]
        with open(os.path.join(compile_stage.cache_dir, "shapes.py")) as f:
            assert f.read() == compiled.code + "\n"

    def test_writes_declarations_to_declaration_dir(self, compile_stage):
        compile_stage.build_start()
        module_id = os.path.join(compile_stage.root, "geometry", "shapes.enso")
        compile_stage.compile_module('export fn area(w: Int) -> Int { return w * w; }', module_id)
        stub = os.path.join(compile_stage.root, "types", "geometry", "shapes.pyi")
        with open(stub) as f:
            assert f.read() == "def area(w: int) -> int: ...\n"

    def test_no_declarations_without_exports(self, compile_stage):
        compile_stage.build_start()
        compile_stage.compile_module('fn hidden() { }', os.path.join(compile_stage.root, "shapes.enso"))
        assert not os.path.exists(os.path.join(compile_stage.root, "types"))

    def test_no_declarations_for_installed_packages(self, compile_stage):
        compile_stage.build_start()
        module_id = os.path.join(compile_stage.root, "enso_modules", "colors", "colors.enso")
        compile_stage.compile_module('export fn red() -> String { return "red"; }', module_id)
        assert not os.path.exists(os.path.join(compile_stage.root, "types"))
        assert os.path.exists(os.path.join(compile_stage.cache_dir, "colors.py"))

    def test_declarations_fall_back_to_out_dir(self, make_package):
        root = make_package("shapes", config='{"compilerOptions": {"outDir": "dist"}}')
        stage = CompileEnso(config_path=os.path.join(root, "ensoconfig.json"), cache_dir=os.path.join(root, "cache"))
        stage.build_start()
        stage.compile_module('export fn f() { }', os.path.join(root, "shapes.enso"))
        assert os.path.exists(os.path.join(root, "dist", "shapes.pyi"))

    def test_declarations_disabled(self, make_package):
        root = make_package("shapes", config='{"compilerOptions": {"outDir": "dist", "declaration": false}}')
        stage = CompileEnso(config_path=os.path.join(root, "ensoconfig.json"), cache_dir=os.path.join(root, "cache"))
        stage.build_start()
        stage.compile_module('export fn f() { }', os.path.join(root, "shapes.enso"))
        assert not os.path.exists(os.path.join(root, "dist"))

    def test_clean_wipes_cache(self, compile_stage):
        os.makedirs(compile_stage.cache_dir)
        stale = os.path.join(compile_stage.cache_dir, "stale.py")
        with open(stale, "w") as f:
            f.write("x = 1\n")
        compile_stage.build_start()
        assert os.path.isdir(compile_stage.cache_dir)
        assert not os.path.exists(stale)

    def test_compile_error_propagates(self, compile_stage):
        compile_stage.build_start()
        with pytest.raises(EnsoCompileError):
            compile_stage.compile_module('let = ;', os.path.join(compile_stage.root, "shapes.enso"))


SAMPLE = '''def helper_function(value):
    long_local_name = value * 2
    return long_local_name


def api(number):
    """Public entry point."""
    return helper_function(number)


__all__ = ['api']
'''


class TestMinify:
    def chunk(self):
        return RenderedChunk(entry_id="sample.enso", exports=["api"])

    def test_output_is_smaller_and_equivalent(self):
        minified = Minify().render_chunk(SAMPLE, self.chunk())
        assert len(minified) < len(SAMPLE)
        assert "long_local_name" not in minified
        assert "Public entry point" not in minified
        namespace = {}
        exec(minified, namespace)
        assert namespace["api"](21) == 42
        assert namespace["__all__"] == ["api"]

    def test_comments_option_keeps_docstrings(self):
        stage = Minify(options=MinifierOptions(comments=True))
        assert "Public entry point" in stage.render_chunk(SAMPLE, self.chunk())

    def test_model_field_annotations_survive(self):
        code = (
            "from pydantic import BaseModel\n\n"
            "class Point(BaseModel):\n    x: int\n    y: int\n\n"
            "def total(p: Point) -> int:\n    return p.x + p.y\n\n"
            "__all__ = ['total']\n"
        )
        minified = Minify().render_chunk(code, RenderedChunk(entry_id="point.enso", exports=["total"]))
        assert ":int" in minified.replace(" ", "")
        assert "->" not in minified
        namespace = {"__name__": "point_bundle"}
        exec(minified, namespace)
        model = next(v for v in namespace.values() if isinstance(v, type) and "x" in getattr(v, "model_fields", {}))
        assert namespace["total"](model(x=2, y=3)) == 5

    def test_single_pass(self):
        minified = Minify(options=MinifierOptions(passes=1)).render_chunk(SAMPLE, self.chunk())
        assert "def api(" in minified
