"""
Tests for per-variant pipeline assembly.
"""
import os

import pytest
from pydantic import ValidationError

from core.pipeline import _PIPELINE, CACHE_DIR, assemble
from core.stages import CompileEnso, Minify, ReplaceFlags


CONFIG_PATH = os.path.join(os.sep, "work", "greeter", "ensoconfig.json")


class TestAssemble:
    def test_production_stages(self):
        stages = assemble(True, CONFIG_PATH)
        assert [s.kind for s in stages] == ["strip-banner", "resolve-modules", "replace-flags", "compile", "minify"]

    def test_development_stages(self):
        stages = assemble(False, CONFIG_PATH)
        assert [s.kind for s in stages] == ["strip-banner", "resolve-modules", "replace-flags", "compile"]

    @pytest.mark.parametrize("is_production", [True, False])
    def test_flag_values(self, is_production):
        flags = next(s for s in assemble(is_production, CONFIG_PATH) if isinstance(s, ReplaceFlags))
        assert flags.values == {"__DEV__": not is_production, "__PROD__": is_production}

    def test_compile_stage_configuration(self):
        compile_stage = next(s for s in assemble(True, CONFIG_PATH) if isinstance(s, CompileEnso))
        assert compile_stage.config_path == CONFIG_PATH
        assert compile_stage.clean is True
        assert compile_stage.use_config_declaration_dir is True

    def test_variants_use_separate_caches(self):
        production = next(s for s in assemble(True, CONFIG_PATH) if isinstance(s, CompileEnso))
        development = next(s for s in assemble(False, CONFIG_PATH) if isinstance(s, CompileEnso))
        base = os.path.join(os.sep, "work", "greeter", CACHE_DIR)
        assert production.cache_dir == os.path.join(base, "production")
        assert development.cache_dir == os.path.join(base, "development")

    def test_production_minifier_options(self):
        minify = assemble(True, CONFIG_PATH)[-1]
        assert isinstance(minify, Minify)
        options = minify.options
        assert options.safe_dynamic_access is True
        assert options.passes == 3
        assert options.keep_exported_names is True
        assert options.drop_console is False
        assert options.comments is False


class TestStageValidation:
    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            _PIPELINE.validate_python([{"kind": "obfuscate"}])

    def test_missing_stage_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            _PIPELINE.validate_python([{"kind": "compile"}])
