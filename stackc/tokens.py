from dataclasses import dataclass


@dataclass
class Token:
    type: str
    value: str
    start: int
    end: int
    line: int = 1
    column: int = 1


KEYWORDS = {
    "fn": "FN",
    "typedef": "TYPEDEF",
    "struct": "STRUCT",
}

PUNCTUATION = {
    ",": "COMMA",
    ";": "SEMICOLON",
    "=": "ASSIGN",
    "+": "PLUS",
    "{": "LBRACE",
    "}": "RBRACE",
}

# Spelling of each punctuation kind, used in diagnostics.
SPELLING = {kind: ch for ch, kind in PUNCTUATION.items()}
