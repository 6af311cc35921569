from __future__ import annotations

import math
from collections import deque
from typing import Iterable, List, Optional

from . import ast
from .errors import ExpectedToken, InvalidToken
from .tokens import Token

INT32_MAX = 2**31 - 1
INT32_DIGITS = len(str(INT32_MAX))
# Largest finite IEEE-754 single-precision value.
FLOAT32_MAX = 3.4028234663852886e38


class Parser:
    def __init__(self, tokens: Iterable[Token]):
        self.tokens = deque(tokens)

    def current(self) -> Optional[Token]:
        return self.tokens[0] if self.tokens else None

    def check(self, type_: str) -> bool:
        tok = self.current()
        return tok is not None and tok.type == type_

    def advance(self) -> Token:
        if not self.tokens:
            raise InvalidToken("Unexpected end of input")
        return self.tokens.popleft()

    def consume(self, type_: str) -> Token:
        if self.check(type_):
            return self.tokens.popleft()
        raise ExpectedToken(type_, self.current())

    def match(self, type_: str) -> Optional[Token]:
        if self.check(type_):
            return self.tokens.popleft()
        return None

    def parse(self) -> ast.Program:
        if not self.tokens:
            raise InvalidToken("Empty program")
        body: List[ast.Node] = []
        while self.tokens:
            body.append(self.parse_statement())
        return ast.Program(body)

    def parse_statement(self) -> ast.Node:
        tok = self.current()
        if tok is None:
            raise InvalidToken("Unexpected end of input")
        if tok.type == "IDENT":
            node = self.parse_var_decl()
        elif tok.type == "LBRACE":
            node = self.parse_scope()
        elif tok.type == "TYPEDEF":
            node = self.parse_typedef()
        elif tok.type == "STRUCT":
            node = self.parse_type_decl()
        else:
            node = self.parse_expression()
        self.consume("SEMICOLON")
        return node

    def parse_var_decl(self) -> ast.VarDecl:
        type_tok = self.consume("IDENT")
        name_tok = self.consume("IDENT")
        self.consume("ASSIGN")
        expr = self.parse_expression()
        return ast.VarDecl(type_tok.value, name_tok.value, expr)

    def parse_scope(self) -> ast.Scope:
        self.consume("LBRACE")
        body: List[ast.Node] = []
        while not self.check("RBRACE"):
            if not self.tokens:
                raise ExpectedToken("RBRACE")
            body.append(self.parse_statement())
        self.consume("RBRACE")
        return ast.Scope(body)

    def parse_typedef(self) -> ast.TypeDef:
        # typedef struct { int x; int y; } vec2;
        # typedef int length;
        self.consume("TYPEDEF")
        if self.check("IDENT"):
            value: ast.Node = ast.Identifier(self.advance().value)
        else:
            value = self.parse_type_decl()
        name_tok = self.consume("IDENT")
        return ast.TypeDef(name_tok.value, value)

    def parse_type_decl(self) -> ast.Node:
        tok = self.advance()
        if tok.type != "STRUCT":
            raise InvalidToken(f"Expected type declaration, found {tok.type} at line {tok.line}")
        if self.check("LBRACE"):
            return ast.StructType(self.parse_fields())
        if self.check("IDENT"):
            name = self.advance().value
            return ast.StructDecl(name, self.parse_fields())
        found = self.current()
        where = f"{found.type} at line {found.line}" if found else "end of input"
        raise InvalidToken(f"Expected struct name or '{{' after 'struct', found {where}")

    def parse_fields(self) -> ast.Properties:
        self.consume("LBRACE")
        properties: ast.Properties = []
        while True:
            type_tok = self.consume("IDENT")
            name_tok = self.consume("IDENT")
            self.consume("SEMICOLON")
            properties.append((type_tok.value, name_tok.value))
            if self.check("RBRACE"):
                break
        self.consume("RBRACE")
        return properties

    def parse_expression(self) -> ast.Node:
        expr = self.parse_primary()
        while self.match("PLUS"):
            right = self.parse_primary()
            expr = ast.BinOp(expr, "+", right)
        return expr

    def parse_primary(self) -> ast.Node:
        tok = self.advance()
        if tok.type == "INT":
            digits = tok.value.lstrip("0")
            if len(digits) > INT32_DIGITS or int(digits or "0") > INT32_MAX:
                raise InvalidToken(f"Integer literal out of range at line {tok.line}, col {tok.column}")
            return ast.Integer(int(digits or "0"))
        if tok.type == "FLOAT":
            value = float(tok.value)
            if not math.isfinite(value) or abs(value) > FLOAT32_MAX:
                raise InvalidToken(f"Float literal out of range at line {tok.line}, col {tok.column}")
            return ast.Float(value)
        if tok.type == "IDENT":
            return ast.Identifier(tok.value)
        if tok.type == "LBRACE":
            data = [self.parse_expression()]
            while self.match("COMMA"):
                data.append(self.parse_expression())
            self.consume("RBRACE")
            return ast.StructData(data)
        raise InvalidToken(f"Unexpected token {tok.type} at line {tok.line}")


def parse_tokens(tokens: Iterable[Token]) -> ast.Program:
    return Parser(tokens).parse()
