from typing import Optional

from .tokens import SPELLING, Token


class CompileError(Exception):
    pass


class LexError(CompileError):
    def __init__(self, message: str, position: int, line: int, column: int):
        super().__init__(f"{message} at line {line}, col {column}")
        self.position = position
        self.line = line
        self.column = column


class IllegalCharacter(LexError):
    pass


class InvalidFloat(LexError):
    pass


class ParseError(CompileError):
    pass


class InvalidToken(ParseError):
    pass


class ExpectedToken(ParseError):
    def __init__(self, expected: str, found: Optional[Token] = None):
        want = SPELLING.get(expected, expected)
        if found is None:
            msg = f"Expected '{want}' (found end of input)"
        else:
            msg = f"Expected '{want}' (found {found.type} at line {found.line}, col {found.column})"
        super().__init__(msg)
        self.expected = expected
        self.found = found


class GeneratorError(CompileError):
    pass


class VariableAlreadyExists(GeneratorError):
    pass


class VariableDoesNotExist(GeneratorError):
    pass


class DatatypeAlreadyExists(GeneratorError):
    pass


class DatatypeDoesNotExist(GeneratorError):
    pass


class CannotAssignSingleValuetoStruct(GeneratorError):
    pass


class TooManyInitializers(GeneratorError):
    pass


class UnsupportedDatatypeSize(GeneratorError):
    pass
