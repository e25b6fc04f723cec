"""Reading and writing grammars as text.

The format is line oriented, and looks like this:

    E T
    "+" "id"

    E = T "+" E
    E = T
    T = "id"

    E

That's the non-terminals on one line, the terminals on the next, then a block
of rules (one per line, `HEAD = body...`) ended by a blank line, and finally
the start symbol. Blank lines before each section are skipped, so the blank
line between the terminals and the rules above is optional.

Symbols are separated by whitespace. A symbol that starts with a double quote
runs to the next unescaped double quote, and a backslash escapes whatever comes
after it, so symbols can contain spaces, quotes, or anything else except a
newline. `""` is EPSILON: `A = ""` is an epsilon production, and so is `A =`.

When writing, terminals (and EPSILON) are always quoted. Non-terminals are
only quoted when they would not read back otherwise.
"""

import logging
import re
import typing

from .grammar import EPSILON, Grammar, Rule

codec_log = logging.getLogger("firstfollow.codec")

_TOKEN_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"|(")|(\S+)')
_ESCAPE_PATTERN = re.compile(r"\\(.)")
_NEEDS_QUOTES_PATTERN = re.compile(r'[\s"\\]')


class GrammarSyntaxError(ValueError):
    """Raised when grammar text cannot be read. `line` is 1-based, or None if
    the problem is that the text ran out.
    """

    message: str
    line: int | None

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message, line)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.message} (at end of input)"
        return f"line {self.line}: {self.message}"


class _LineReader:
    """A cursor over the lines of some text, which knows what line it's on."""

    lines: list[str]
    index: int

    def __init__(self, text: str):
        self.lines = text.splitlines()
        self.index = 0

    @property
    def line_number(self) -> int | None:
        if self.index >= len(self.lines):
            return None
        return self.index + 1

    def skip_blank(self):
        while self.index < len(self.lines) and self.lines[self.index].strip() == "":
            self.index += 1

    def next_line(self) -> str | None:
        if self.index >= len(self.lines):
            return None
        line = self.lines[self.index]
        self.index += 1
        return line


###############################################################################
# Reading
###############################################################################


def split_symbols(line: str, line_number: int | None = None) -> list[str]:
    """Split a single line into symbols, handling quotes and escapes."""
    symbols = []
    for match in _TOKEN_PATTERN.finditer(line):
        quoted, unterminated, bare = match.groups()
        if unterminated is not None:
            raise GrammarSyntaxError(
                f"Unterminated quoted symbol starting at column {match.start() + 1}",
                line_number,
            )
        elif quoted is not None:
            symbols.append(_ESCAPE_PATTERN.sub(r"\1", quoted))
        else:
            symbols.append(bare)
    return symbols


def _read_line_symbols(reader: _LineReader, what: str) -> typing.Tuple[list[str], int]:
    reader.skip_blank()
    line_number = reader.line_number
    line = reader.next_line()
    if line is None or line_number is None:
        raise GrammarSyntaxError(f"Expected {what}")
    return split_symbols(line, line_number), line_number


def _parse_rule(line: str, line_number: int | None) -> Rule:
    symbols = split_symbols(line, line_number)
    if len(symbols) == 0:
        raise GrammarSyntaxError("Expected a rule", line_number)
    if len(symbols) < 2 or symbols[1] != "=":
        raise GrammarSyntaxError(
            f"Expected '=' after the head of the rule for {symbols[0]!r}",
            line_number,
        )
    return Rule(symbols[0], tuple(symbols[2:]))


def _read_rule_block(reader: _LineReader) -> frozenset[Rule]:
    reader.skip_blank()
    rules = set()
    while True:
        line_number = reader.line_number
        line = reader.next_line()
        if line is None or line.strip() == "":
            break
        rules.add(_parse_rule(line, line_number))
    return frozenset(rules)


def read_symbol(text: str) -> str:
    """Read the first symbol in the text."""
    reader = _LineReader(text)
    symbols, line_number = _read_line_symbols(reader, "a symbol")
    if len(symbols) == 0:
        raise GrammarSyntaxError("Expected a symbol", line_number)
    return symbols[0]


def read_symbol_sequence(text: str) -> typing.Tuple[str, ...]:
    """Read the symbols on the first non-blank line of the text, in order."""
    symbols, _ = _read_line_symbols(_LineReader(text), "a sequence of symbols")
    return tuple(symbols)


def read_symbol_set(text: str) -> frozenset[str]:
    """Read the symbols on the first non-blank line of the text."""
    symbols, _ = _read_line_symbols(_LineReader(text), "a set of symbols")
    return frozenset(symbols)


def read_rule(text: str) -> Rule:
    reader = _LineReader(text)
    reader.skip_blank()
    line_number = reader.line_number
    line = reader.next_line()
    if line is None:
        raise GrammarSyntaxError("Expected a rule")
    return _parse_rule(line, line_number)


def read_rule_set(text: str) -> frozenset[Rule]:
    """Read a block of rules, up to the first blank line after the first
    rule.
    """
    return _read_rule_block(_LineReader(text))


def read_grammar(text: str) -> Grammar:
    reader = _LineReader(text)

    non_terminals, line_number = _read_line_symbols(reader, "the non-terminals")
    codec_log.debug("line %d: %d non-terminals", line_number, len(non_terminals))

    terminals, line_number = _read_line_symbols(reader, "the terminals")
    codec_log.debug("line %d: %d terminals", line_number, len(terminals))

    rules = _read_rule_block(reader)
    codec_log.debug("%d rules", len(rules))

    start, line_number = _read_line_symbols(reader, "the start symbol")
    codec_log.debug("line %d: start symbol %r", line_number, start[0])

    return Grammar(
        non_terminals=non_terminals,
        terminals=terminals,
        rules=rules,
        start=start[0],
    )


def load(stream: typing.TextIO) -> Grammar:
    return read_grammar(stream.read())


###############################################################################
# Writing
###############################################################################


def quote(symbol: str) -> str:
    escaped = symbol.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_symbol(grammar: Grammar, symbol: str) -> str:
    if symbol == EPSILON or grammar.has_terminal(symbol):
        return quote(symbol)
    if symbol == "=" or _NEEDS_QUOTES_PATTERN.search(symbol):
        return quote(symbol)
    return symbol


def format_symbol_sequence(grammar: Grammar, symbols: typing.Iterable[str]) -> str:
    return " ".join(format_symbol(grammar, s) for s in symbols)


def format_symbol_set(grammar: Grammar, symbols: typing.Iterable[str]) -> str:
    return format_symbol_sequence(grammar, sorted(symbols))


def format_rule(grammar: Grammar, rule: typing.Tuple[str, typing.Iterable[str]]) -> str:
    head, body = rule
    result = f"{format_symbol(grammar, head)} ="
    body_text = format_symbol_sequence(grammar, body)
    if body_text:
        result += f" {body_text}"
    return result


def format_rule_set(grammar: Grammar, rules: typing.Iterable[Rule]) -> str:
    return "\n".join(format_rule(grammar, rule) for rule in sorted(rules))


def format_grammar(grammar: Grammar) -> str:
    sections = [
        format_symbol_set(grammar, grammar.non_terminals),
        format_symbol_set(grammar, grammar.terminals),
        format_rule_set(grammar, grammar.rules),
        format_symbol(grammar, grammar.start),
    ]
    return "\n\n".join(sections)


def dump(grammar: Grammar, stream: typing.TextIO):
    stream.write(format_grammar(grammar))
    stream.write("\n")
