"""Render/parse round-trip tests."""

import pytest

from stackc.ast import render
from stackc.errors import InvalidToken
from stackc.lexer import tokenize
from stackc.parser import parse_tokens

CORPUS = [
    "int x = 1+2;",
    "1 + 2 + 3;",
    "0.5 + 2.;",
    "100000000000000000000.0;",
    "0.0000001;",
    "struct vec2 { int x; int y; };",
    "typedef struct { int x; int y; } vec2; vec2 v = {1, 2 + x};",
    "typedef struct point { int x; } pt;",
    "typedef int length; length n = 3;",
    "int a = 1; { int b = 2; { int c = a + b; }; { }; };",
    "line l = {{1, 2}, {3, 4}};",
]


def parse(source):
    return parse_tokens(tokenize(source))


@pytest.mark.parametrize("source", CORPUS)
def test_render_then_parse_is_identity(source):
    tree = parse(source)
    rendered = render(tree)
    assert parse(rendered) == tree
    assert render(parse(rendered)) == rendered


def test_render_program():
    assert str(parse("int x = 1+2; {int y = {1,2};};")) == (
        "int x = 1 + 2;\n"
        "{\n"
        "    int y = {1, 2};\n"
        "};\n"
    )


def test_render_struct():
    assert render(parse("struct vec2 { int x; int y; };").body[0]) == (
        "struct vec2 {\n"
        "    int x;\n"
        "    int y;\n"
        "}"
    )


def test_render_float_without_exponent():
    assert render(parse("100000000000000000000.0;").body[0]) == "100000000000000000000.0"
    assert render(parse("7.;").body[0]) == "7.0"


def test_largest_float32_round_trips():
    tree = parse("340282346638528859811704183484516925440.0;")
    rendered = render(tree)
    assert parse(rendered) == tree


@pytest.mark.parametrize("source", ["4" + "0" * 38 + ".0;", "1" + "0" * 400 + ".0;"])
def test_out_of_range_float_never_renders(source):
    with pytest.raises(InvalidToken):
        parse(source)


def test_long_chain_round_trips():
    source = " + ".join(str(i % 10) for i in range(5000)) + ";"
    rendered = render(parse(source))
    assert rendered == source + "\n"
    assert render(parse(rendered)) == rendered
