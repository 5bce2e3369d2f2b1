"""
Ensō compiler: turns the source of one Ensō module into Python.
"""
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedInput, VisitError
from pydantic import BaseModel

from core.errors import (
    EnsoCompileError,
    get_line_context,
    detect_common_error_patterns,
    validate_break_continue,
)
from core.grammar import enso_grammar
from core.introspection import DeclarationExtractor
from core.log import debug_log
from core.transformer import EnsoTransformer


class CompiledModule(BaseModel):
    """Python code for one Ensō module plus what the linker needs to know."""
    module_id: str
    code: str
    exports: List[str] = []
    header: List[str] = []


def create_parser():
    # Use Earley parser instead of LALR to handle grammar ambiguities
    return Lark(enso_grammar, parser='earley')


def parse_source(source_code, module_id="<source>", parser=None):
    """Parse Ensō source, converting Lark errors into EnsoCompileError."""
    parser = parser or create_parser()
    try:
        return parser.parse(source_code)
    except UnexpectedInput as e:
        line_number = getattr(e, "line", None)
        column = getattr(e, "column", None)
        if line_number is not None and line_number < 1:
            line_number = None
        suggestion = detect_common_error_patterns(source_code) or "Check syntax around this line"
        raise EnsoCompileError(
            message="Syntax error",
            line_number=line_number,
            column=column,
            context=get_line_context(source_code, line_number),
            suggestion=suggestion,
            module_id=module_id,
        ) from e


def compile_source(source_code, module_id="<source>", parser=None):
    """Compile one Ensō module to a CompiledModule."""
    debug_log(f"Compiling module: {module_id}")

    try:
        validate_break_continue(source_code)
    except EnsoCompileError as e:
        raise EnsoCompileError(
            e.message,
            line_number=e.line_number,
            context=e.context,
            suggestion=e.suggestion,
            module_id=module_id,
        ) from e

    tree = parse_source(source_code, module_id, parser)

    transformer = EnsoTransformer()
    try:
        code = transformer.transform(tree)
    except VisitError as e:
        raise EnsoCompileError(
            message=f"Transformation error: {e.orig_exc}",
            suggestion="Check syntax and types",
            module_id=module_id,
        ) from e

    return CompiledModule(
        module_id=module_id,
        code=code,
        exports=transformer.exports,
        header=transformer.header,
    )


def extract_declarations(source_code, module_id="<source>", parser=None):
    """Return the `.pyi` stub for the exported declarations of a module ("" if none)."""
    tree = parse_source(source_code, module_id, parser)
    return DeclarationExtractor().transform(tree)
