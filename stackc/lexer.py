from __future__ import annotations

import string
from typing import List

from .errors import IllegalCharacter, InvalidFloat
from .tokens import KEYWORDS, PUNCTUATION, Token


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    i = 0
    line = 1
    col = 1

    def advance(n: int = 1):
        nonlocal i, line, col
        for _ in range(n):
            if source[i] == "\n":
                line += 1
                col = 1
            else:
                col += 1
            i += 1

    while i < len(source):
        ch = source[i]
        if ch.isspace():
            advance()
            continue
        if ch in PUNCTUATION:
            tokens.append(Token(PUNCTUATION[ch], ch, i, i, line, col))
            advance()
            continue
        if ch.isalpha():
            start, start_col = i, col
            word = ch
            advance()
            while i < len(source) and source[i].isalnum():
                word += source[i]
                advance()
            tokens.append(Token(KEYWORDS.get(word, "IDENT"), word, start, i - 1, line, start_col))
            continue
        if ch in string.digits:
            start, start_col = i, col
            num = ch
            dots = 0
            advance()
            while i < len(source) and source[i] in string.digits + ".":
                if source[i] == ".":
                    if dots:
                        raise InvalidFloat(f"Second '.' in number '{num}'", i, line, col)
                    dots += 1
                num += source[i]
                advance()
            tokens.append(Token("FLOAT" if dots else "INT", num, start, i - 1, line, start_col))
            continue
        raise IllegalCharacter(f"Unexpected character '{ch}'", i, line, col)

    return tokens
