"""
Ensō AST Transformer - Converts parsed AST to Python code.

This module contains the EnsoTransformer class that transforms Lark parse trees
of one Ensō module into Python source. Module linking (imports, exports,
``__all__``) is left to the bundling engine.
"""

import keyword
import re
from lark import Transformer


TYPE_MAP = {"String": "str", "Int": "int", "Float": "float", "Bool": "bool"}

OPERATOR_MAP = {"&&": "and", "||": "or"}


def indent(code):
    """Indent every non-empty line of a code block by 4 spaces."""
    return "\n".join(f"    {line}" if line else line for line in code.split("\n"))


def render_header(uses_models, typing_names):
    """Import lines a compiled module needs at the top of the bundle."""
    header = []
    if typing_names:
        header.append(f"from typing import {', '.join(sorted(typing_names))}")
    if uses_models:
        header.append("from pydantic import BaseModel")
    return header


class TypeRenderer(Transformer):
    """Shared handling of names and type expressions."""

    def __init__(self):
        super().__init__()
        self.uses_models = False
        self.typing_names = set()

    def type_expr(self, args):
        return args[0]

    def simple_type(self, args):
        name = str(args[0])
        if name == "Any":
            self.typing_names.add("Any")
        return TYPE_MAP.get(name, name)

    def list_type(self, args):
        self.typing_names.add("List")
        return f"List[{args[0]}]"

    def optional_type(self, args):
        self.typing_names.add("Optional")
        return f"Optional[{args[0]}]"

    def enum_type(self, args):
        self.typing_names.add("Literal")
        options = ", ".join(str(x) for x in args if x is not None)
        return f"Literal[{options}]"

    def arg_list(self, args):
        return ", ".join(args)

    def arg_def(self, args):
        return f"{args[0]}: {args[1]}"

    def field_def(self, args):
        return f"{args[0]}: {args[1]}"

    def NAME(self, t):
        name = str(t)
        # Ensō identifiers may collide with Python keywords (e.g. `pass`, `lambda`)
        return f"{name}_" if keyword.iskeyword(name) else name

    def TYPE_NAME(self, t):
        return str(t)

    def STRING(self, t):
        return str(t)

    def NUMBER(self, t):
        return str(t)


class EnsoTransformer(TypeRenderer):
    """
    Transforms Ensō AST nodes into Python code strings.

    After transforming, ``exports`` lists the names marked with ``export``
    and ``header`` the imports the generated code relies on.
    """

    def __init__(self):
        super().__init__()
        self.exports = []

    @property
    def header(self):
        return render_header(self.uses_models, self.typing_names)

    def start(self, items):
        """Join all top-level definitions and statements."""
        items = [i for i in items if i and i.strip()]
        return "\n\n".join(items)

    # Imports were already resolved into the module graph by the bundler.
    def import_def(self, args):
        return ""

    def export_def(self, args):
        code = args[0]
        match = re.match(r"(?:class|def) (\w+)", code)
        self.exports.append(match.group(1))
        return code

    def struct_def(self, args):
        """Transform struct definition to Pydantic BaseModel class."""
        name, *fields = args
        self.uses_models = True
        if not fields:
            return f"class {name}(BaseModel):\n    pass"
        return f"class {name}(BaseModel):\n    " + "\n    ".join(fields)

    def fn_def(self, args):
        name, arg_str, ret_type, body = args
        signature = f"def {name}({arg_str or ''})"
        if ret_type:
            signature += f" -> {ret_type}"
        return f"{signature}:\n{indent(body)}"

    def stmt_block(self, args):
        lines = [a for a in args if a]
        if not lines:
            return "pass"
        return "\n".join(lines)

    def statement(self, args):
        return args[0]

    def let_stmt(self, args):
        return f"{args[0]} = {args[1]}"

    def assign_stmt(self, args):
        return f"{args[0]} = {args[1]}"

    def print_stmt(self, args):
        return f"print({args[0]})"

    def return_stmt(self, args):
        if args[0] is None:
            return "return"
        return f"return {args[0]}"

    def break_stmt(self, args):
        return "break"

    def continue_stmt(self, args):
        return "continue"

    def if_stmt(self, args):
        """Transform if/else, folding branches on a constant condition."""
        cond, body, else_body = args
        if cond == "True":
            return "" if body == "pass" else body
        if cond == "False":
            return else_body or ""

        res = f"if {cond}:\n{indent(body)}"
        if else_body:
            res += f"\nelse:\n{indent(else_body)}"
        return res

    def else_clause(self, args):
        return args[0]

    def for_stmt(self, args):
        var_name, iterator, body = args
        return f"for {var_name} in {iterator}:\n{indent(body)}"

    def while_stmt(self, args):
        cond, body = args
        if cond == "False":
            return ""
        return f"while {cond}:\n{indent(body)}"

    def assertion(self, args):
        return f"assert {args[0]}"

    def expr_stmt(self, args):
        return args[0]

    def expr(self, args):
        return " ".join(args)

    def not_expr(self, args):
        operand = args[0]
        if operand in ("True", "False"):
            return "False" if operand == "True" else "True"
        return f"(not {operand})"

    def paren_expr(self, args):
        return f"({args[0]})"

    def list_literal(self, args):
        return f"[{', '.join(args)}]"

    def struct_init(self, args):
        return f"{args[0]}({', '.join(args[1:])})"

    def field_init(self, args):
        return f"{args[0]}={args[1]}"

    def call_expr(self, args):
        name, params = args
        return f"{name}({params or ''})"

    def args_call(self, args):
        return ", ".join(args)

    def prop_access(self, args):
        return ".".join(args)

    def BOOLEAN(self, t):
        return "True" if str(t) == "true" else "False"

    def OPERATOR(self, t):
        op = str(t)
        return OPERATOR_MAP.get(op, op)
