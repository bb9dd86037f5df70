"""
Error taxonomy and parse error reporting for Cell
Parse errors are enriched with context lines and suggestions
"""

from typing import List, Optional, Dict
from pyparsing import ParseBaseException, ParseFatalException
import re


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 1) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    if isinstance(exc, ParseFatalException):
        return []

    expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(|$)", str(exc))
    if expected_match:
        return [expected_match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 0 < line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of input"
    return "unknown"


def generate_suggestions(source_text: str, got: str) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []
    stripped = source_text.strip()

    if not stripped:
        suggestions.append("Enter a symbol, a peano literal such as '3, or an application")

    if stripped.endswith("]") and "[" not in stripped:
        suggestions.append("Applications open their operand list with '[', e.g. Succ[Zero]")

    if stripped.count("[") != stripped.count("]"):
        suggestions.append("Check that every '[' has a matching ']'")

    if "(" in got or ")" in got:
        suggestions.append("Cell applies operators with brackets: use Add['1, '2] instead of Add('1, '2)")

    if re.search(r"(?<!['\w])\d", stripped):
        suggestions.append("Natural number literals need a leading quote, e.g. '4")

    if re.search(r"'\D", stripped) or stripped.endswith("'"):
        suggestions.append("A peano literal is a quote followed only by digits")

    return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str) -> Dict:
    """Convert pyparsing exception to enhanced Cell error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(source_text, got)

    # Fatal exceptions carry our own message, the rest carry pyparsing's
    message = exc.msg if isinstance(exc, ParseFatalException) else f"Cannot parse expression: {source_text.strip()}"

    return make_parse_error(
        message=message,
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class CellError(Exception):
    """Base class for every error raised by the Cell core"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidConstructionError(CellError):
    """A value was built outside its domain (e.g. a negative natural)"""
    pass


class CellParseError(CellError):
    """Parse error with location, context and suggestions"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None):
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        super().__init__(message)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions
        )
        return format_parse_error(error_dict)


class CellRuntimeError(CellError):
    """Failure while evaluating or reducing an expression"""
    pass


class UndefinedSymbolError(CellRuntimeError):
    """Symbol lookup exhausted the whole scope chain"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined symbol: {name}")


class ArityError(CellRuntimeError):
    """Operand count mismatch for a special form or binding"""
    pass


class CellTypeError(CellRuntimeError):
    """Operand of the wrong kind where a form requires a specific one"""
    pass


class RecursionLimitError(CellRuntimeError):
    """Nesting exceeded the configured evaluation depth"""
    pass


class CellErrorHandler:
    """Turns pyparsing failures on one source text into CellParseErrors"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_exception(self, exc: ParseBaseException) -> CellParseError:
        """Convert pyparsing exception to enhanced Cell error"""
        error_dict = enhance_parse_exception_dict(exc, self.source_text)
        return CellParseError(
            message=error_dict['message'],
            location=error_dict['location'],
            line=error_dict['line'],
            column=error_dict['column'],
            expected=error_dict['expected'],
            got=error_dict['got'],
            context=error_dict['context'],
            suggestions=error_dict['suggestions']
        )
