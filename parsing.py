"""
Cell Language Parser
Prefix, bracket-delimited grammar built with pyparsing
"""

from typing import Any, List, Optional, Tuple
import re

from pyparsing import (
    Forward, Regex, Suppress, Group, ZeroOrMore, Opt, DelimitedList,
    ParserElement, ParseBaseException, ParseFatalException, lineno, col
)

from error_handling import CellErrorHandler, CellParseError, get_context_lines
from expressions import (
    NaturalNumber, BooleanValue, SymbolRef, Application, BindForm, RecurseForm,
    SpecialForm, PrimitiveFunction, Expression, describe_kind, sub_expressions
)
from utilities import recursion_headroom

# Enable packrat parsing for performance
ParserElement.enable_packrat()


PEANO_DIGITS = re.compile(r"[0-9]+")

# Each level of '[' nesting costs pyparsing a few dozen host frames
PARSE_FRAMES_PER_LEVEL = 40
MAX_PARSE_NESTING = 300


def bracket_nesting(text: str) -> Tuple[int, int]:
    """Deepest '[' nesting in text and the offset of the bracket reaching it"""
    depth = deepest = 0
    deepest_loc = 0
    for loc, char in enumerate(text):
        if char == '[':
            depth += 1
            if depth > deepest:
                deepest, deepest_loc = depth, loc
        elif char == ']' and depth > 0:
            depth -= 1
    return deepest, deepest_loc


def nesting_error(text: str, loc: int) -> CellParseError:
    line = lineno(loc, text)
    column = col(loc, text)
    return CellParseError(
        f"Expression nests too deeply to parse (limit {MAX_PARSE_NESTING} levels)",
        location=loc, line=line, column=column,
        context=get_context_lines(text, line, column)
    )


def make_natural(s: str, loc: int, tokens) -> NaturalNumber:
    """Parse action for 'digits literals"""
    literal = tokens[0]
    digits = literal[1:]
    if not PEANO_DIGITS.fullmatch(digits):
        raise ParseFatalException(s, loc, f"Invalid Peano number: {literal}")
    return NaturalNumber(int(digits))


def make_application_chain(tokens) -> Expression:
    """Fold `f[a][b]` into Application(Application(f, [a]), [b])"""
    result = tokens[0]
    for operands in tokens[1:]:
        result = Application(result, tuple(operands))
    return result


class CellGrammar:
    """Cell grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the grammar: atoms followed by any number of operand lists"""
        expression = Forward()

        # Everything up to the next delimiter belongs to the literal, so
        # malformed digit runs are reported instead of split
        peano_literal = Regex(r"'[^\[\],\s]*").set_parse_action(make_natural)
        symbol = Regex(r"[A-Za-z][A-Za-z0-9]*").set_parse_action(lambda t: SymbolRef(t[0]))

        atom = peano_literal | symbol

        # Commas inside nested brackets belong to the nested operand list
        operand_list = Group(
            Suppress("[") + Opt(DelimitedList(expression, ",")) + Suppress("]")
        )

        expression <<= (atom + ZeroOrMore(operand_list)).set_parse_action(make_application_chain)

        self.expression = expression
        self.atom = atom
        self.operand_list = operand_list
        self.peano_literal = peano_literal
        self.symbol = symbol

        if self.debug:
            self.expression.set_debug()

    def parse_expression(self, text: str) -> Expression:
        """Parse a single Cell expression"""
        depth, deepest = bracket_nesting(text)
        if depth > MAX_PARSE_NESTING:
            raise nesting_error(text, deepest)

        try:
            with recursion_headroom(depth * PARSE_FRAMES_PER_LEVEL):
                result = self.expression.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise CellErrorHandler(text).enhance_parse_exception(e) from e
        except RecursionError as e:
            raise nesting_error(text, deepest) from e
        return result[0]


class CellParser:
    """Main Cell parser: single expressions, scripts and files"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = CellGrammar(debug)

    def parse_expression(self, text: str) -> Expression:
        """Parse a single Cell expression"""
        return self.grammar.parse_expression(text)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Tuple[int, Expression]]:
        """Parse a script: one expression per non-empty line, '#' starts a comment"""
        expressions = []
        for line_num, line in enumerate(text.split('\n'), 1):
            source = strip_comment(line).strip()
            if not source:
                continue
            try:
                expressions.append((line_num, self.grammar.parse_expression(source)))
            except CellParseError as e:
                raise CellParseError(
                    f"{filename}:{line_num}: {e.message}",
                    location=e.location, line=line_num, column=e.column,
                    expected=e.expected, got=e.got, context=e.context,
                    suggestions=e.suggestions
                ) from e
        return expressions

    def parse_file(self, filepath: str) -> List[Tuple[int, Expression]]:
        """Parse a Cell script file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise CellParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise CellParseError(f"Cannot decode file {filepath}: {e}")
        return self.parse_string(content, filepath)


def strip_comment(line: str) -> str:
    if '#' in line:
        return line[:line.index('#')]
    return line


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> CellParser:
    """Create a Cell parser"""
    return CellParser(debug=debug)


def create_debug_parser() -> CellParser:
    """Create a Cell parser with pyparsing debug output enabled"""
    return CellParser(debug=True)


_default_parser = create_parser()


def parse(text: str) -> Expression:
    """Parse text into an Expression tree, raising CellParseError on bad input"""
    return _default_parser.parse_expression(text)


# Utility functions for working with expression trees
def node_value(expr: Expression) -> Optional[Any]:
    """Payload shown next to a node's kind in tree dumps"""
    if isinstance(expr, (NaturalNumber, BooleanValue)):
        return expr.value
    elif isinstance(expr, SymbolRef):
        return expr.name
    elif isinstance(expr, BindForm):
        return list(expr.params)
    elif isinstance(expr, RecurseForm):
        return expr.variable
    elif isinstance(expr, SpecialForm):
        return expr.value
    elif isinstance(expr, PrimitiveFunction):
        return expr.name
    return None


def pretty_print_tree(expr: Expression, indent: int = 0, label: Optional[str] = None) -> str:
    """Pretty print an expression tree for debugging"""
    result = "  " * indent
    if label:
        result += f"{label}: "
    result += describe_kind(expr)
    value = node_value(expr)
    if value is not None:
        result += f"({value!r})"
    result += "\n"

    for child_label, child in sub_expressions(expr):
        result += pretty_print_tree(child, indent + 1, child_label)

    return result
