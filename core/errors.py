"""
Error types and validation helpers for the Ensō package builder.
"""
import re


class ConfigurationError(Exception):
    """The package manifest or compiler configuration is missing or malformed."""


class CleanupError(Exception):
    """Removing the output of a previous build failed."""


class BuildError(RuntimeError):
    """Building one bundle variant failed."""


class EnsoCompileError(BuildError):
    """Custom exception for Ensō compilation errors with line numbers and hints."""
    def __init__(self, message, line_number=None, column=None, context=None, suggestion=None, module_id=None):
        self.message = message
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        self.module_id = module_id
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with context and suggestion."""
        lines = ["\n❌ Compilation Error"]
        if self.module_id:
            lines.append(f" in {self.module_id}")
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


def detect_common_error_patterns(source_code):
    """Detect common mistakes and return a helpful suggestion, or None."""
    open_braces = source_code.count('{')
    close_braces = source_code.count('}')
    if open_braces != close_braces:
        return f"Unmatched braces: found {open_braces} '{{' but {close_braces} '}}'"

    open_parens = source_code.count('(')
    close_parens = source_code.count(')')
    if open_parens != close_parens:
        return f"Unmatched parentheses: found {open_parens} '(' but {close_parens} ')'"

    if re.search(r'\bfn\s+\w+\s*\{', source_code):
        return "Functions need a parameter list: use 'fn name() { ... }'"

    if re.search(r'\b(let|print|return|assert)\b[^;{}]*\n\s*\}', source_code):
        return "Statements should end with ';'"

    return None


def validate_break_continue(source_code):
    """Validate that break/continue only appear inside loops (for, while)."""
    lines = source_code.split('\n')

    # Brace depths that open a loop body
    loop_stack = []
    current_brace_depth = 0

    for line_num, line in enumerate(lines, 1):
        stripped = line.strip()

        if not stripped or stripped.startswith('//') or stripped.startswith('#'):
            continue

        has_loop = bool(re.search(r'\b(for\s+\w+\s+in|while)\b', stripped))

        for char in stripped:
            if char == '{':
                if has_loop:
                    loop_stack.append(current_brace_depth)
                    has_loop = False
                current_brace_depth += 1
            elif char == '}':
                current_brace_depth = max(current_brace_depth - 1, 0)
                if loop_stack and loop_stack[-1] == current_brace_depth:
                    loop_stack.pop()

        match = re.search(r'\b(break|continue)\s*;', stripped)
        if match and not loop_stack:
            keyword = match.group(1)
            raise EnsoCompileError(
                f"'{keyword}' statement outside of loop",
                line_number=line_num,
                context=stripped,
                suggestion=f"'{keyword}' can only be used inside a 'for' or 'while' loop"
            )

    return True
