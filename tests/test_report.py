import io
import pathlib
import textwrap

from firstfollow import read_grammar
from firstfollow.report import format_report, main


GRAMMAR_TEXT = textwrap.dedent(
    """\
    E T
    "+" "id"

    E = T "+" E
    E = T
    T = "id"

    E
    """
)

EXPECTED_REPORT = textwrap.dedent(
    """\
    E T

    "+" "id"

    E = T
    E = T "+" E
    T = "id"

    E

    FIRST("+"): "+"
    FIRST(E): "id"
    FIRST(T): "id"
    FIRST("id"): "id"
    FOLLOW("+"): "id"
    FOLLOW(E): ""
    FOLLOW(T): "" "+"
    FOLLOW("id"): "" "+"
    """
)


def test_format_report():
    assert format_report(read_grammar(GRAMMAR_TEXT)) == EXPECTED_REPORT


def test_format_report_empty_sets():
    text = "S A\n\"a\"\n\nS = \"a\"\n\nS\n"

    report = format_report(read_grammar(text))

    assert "FIRST(A):\n" in report
    assert "FOLLOW(A):\n" in report
    assert 'FOLLOW(S): ""\n' in report


def test_main_file(tmp_path, capsys):
    path = tmp_path / "expr.grammar"
    path.write_text(GRAMMAR_TEXT, encoding="utf-8")

    assert main(["firstfollow", str(path)]) == 0

    captured = capsys.readouterr()
    assert captured.out == EXPECTED_REPORT


def test_main_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(GRAMMAR_TEXT))

    assert main(["firstfollow"]) == 0

    captured = capsys.readouterr()
    assert captured.out == EXPECTED_REPORT


def test_main_output_file(tmp_path, capsys):
    grammar_path = tmp_path / "expr.grammar"
    grammar_path.write_text(GRAMMAR_TEXT, encoding="utf-8")
    report_path = tmp_path / "report.txt"

    assert main(["firstfollow", str(grammar_path), "-o", str(report_path)]) == 0

    assert report_path.read_text(encoding="utf-8") == EXPECTED_REPORT
    assert capsys.readouterr().out == ""


def test_main_syntax_error(tmp_path, capsys):
    path = tmp_path / "bad.grammar"
    path.write_text('E\n"id"\n\nE -> "id"\n\nE\n', encoding="utf-8")

    assert main(["firstfollow", str(path)]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "line 4" in captured.err


def test_main_missing_file(tmp_path, capsys):
    assert main(["firstfollow", str(tmp_path / "nope.grammar")]) == 1

    captured = capsys.readouterr()
    assert "Unable to read grammar" in captured.err


EXAMPLES = pathlib.Path(__file__).parent.parent / "examples"


def test_expression_example(capsys):
    assert main(["firstfollow", str(EXAMPLES / "expression.grammar")]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert 'FIRST(Expr): "(" "*" "+" "id"' in lines
    assert 'FIRST(Term): "(" "*" "id"' in lines
    assert 'FIRST(Factor): "(" "id"' in lines
    assert 'FOLLOW(Expr): "" ")"' in lines
    assert 'FOLLOW(Term): "" ")"' in lines
    assert 'FOLLOW(Factor): "" ")"' in lines
    assert 'FOLLOW("+"): "(" "*" "id"' in lines


def test_optional_example(capsys):
    assert main(["firstfollow", str(EXAMPLES / "optional.grammar")]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert 'FIRST(Decl): "const" "int" "static"' in lines
    assert 'FIRST(Mods): "" "const" "static"' in lines
    assert 'FOLLOW(Mods): "int"' in lines
    assert 'FOLLOW(Mod): "const" "int" "static"' in lines
    assert 'FOLLOW("Name List"): ""' in lines
    assert 'FOLLOW("id"): "" ","' in lines
