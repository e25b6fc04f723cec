"""Print the FIRST and FOLLOW sets of every symbol in a grammar.

    $ python -m firstfollow expr.grammar
    E T
    ...
    FIRST(E): "id"
    ...
    FOLLOW(T): "" "+"

The grammar is read in the format described in `codec`, from a file or from
stdin.
"""

import argparse
import logging
import sys
import typing

from . import codec
from .grammar import Grammar


def _format_line(label: str, grammar: Grammar, symbol: str, symbols: set[str]) -> str:
    line = f"{label}({codec.format_symbol(grammar, symbol)}):"
    text = codec.format_symbol_set(grammar, symbols)
    if text:
        line += f" {text}"
    return line


def format_report(grammar: Grammar) -> str:
    lines = [codec.format_grammar(grammar), ""]
    symbols = grammar.symbols()
    for symbol in symbols:
        lines.append(_format_line("FIRST", grammar, symbol, grammar.first([symbol])))
    for symbol in symbols:
        lines.append(_format_line("FOLLOW", grammar, symbol, grammar.follow(symbol)))
    return "\n".join(lines) + "\n"


def _read_grammar(path: str) -> Grammar:
    if path == "-":
        return codec.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return codec.load(f)


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="firstfollow",
        description="Compute the FIRST and FOLLOW sets of a context-free grammar",
    )
    parser.add_argument(
        "grammar",
        nargs="?",
        default="-",
        help="Path to the grammar to read. The default (or '-') reads the grammar from stdin.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Path to write the report to. The default is stdout.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="How much to log to stderr while computing the sets. INFO shows every "
        "fixed-point pass; DEBUG also shows what was read.",
    )

    parsed = parser.parse_args(args[1:])
    logging.basicConfig(level=getattr(logging, parsed.log_level), stream=sys.stderr)

    try:
        grammar = _read_grammar(parsed.grammar)
    except codec.GrammarSyntaxError as e:
        print(f"{parsed.grammar}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Unable to read grammar: {e}", file=sys.stderr)
        return 1

    report = format_report(grammar)
    if parsed.output is None:
        sys.stdout.write(report)
    else:
        try:
            with open(parsed.output, "w", encoding="utf-8") as f:
                f.write(report)
        except OSError as e:
            print(f"Unable to write report: {e}", file=sys.stderr)
            return 1

    return 0


def console_main() -> typing.NoReturn:
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    console_main()
