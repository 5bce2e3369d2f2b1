"""
Ensō declaration extraction.

This module contains the DeclarationExtractor class that turns the exported
structs and functions of a parsed Ensō module into a Python stub (``.pyi``)
describing the public interface of the compiled bundle.
"""

from core.transformer import TypeRenderer, render_header


class DeclarationExtractor(TypeRenderer):
    """
    Extracts exported declarations from an Ensō AST.

    Unlike EnsoTransformer which generates executable code, DeclarationExtractor
    only keeps signatures and ignores implementation details. Non-exported
    definitions and top-level statements produce nothing.
    """

    def start(self, items):
        stubs = [i for i in items if isinstance(i, str)]
        if not stubs:
            return ""
        header = render_header(self.uses_models, self.typing_names)
        sections = ["\n".join(header)] if header else []
        return "\n\n".join(sections + stubs) + "\n"

    def export_def(self, args):
        _, stub = args[0]
        return stub

    # Definitions return tagged tuples so only exported ones survive `start`.
    def struct_def(self, args):
        name, *fields = args
        self.uses_models = True
        body = "\n    ".join(fields) if fields else "..."
        return ("struct", f"class {name}(BaseModel):\n    {body}")

    def fn_def(self, args):
        name, arg_str, ret_type, _ = args
        signature = f"def {name}({arg_str or ''})"
        if ret_type:
            signature += f" -> {ret_type}"
        return ("fn", f"{signature}: ...")
