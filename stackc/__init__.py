"""stackc: a small ahead-of-time compiler emitting x86-64 NASM assembly."""

from typing import Dict, Optional

from .codegen import generate_x86_64
from .lexer import tokenize
from .parser import parse_tokens
from .typesys import Datatype


def compile_source(source: str, builtins: Optional[Dict[str, Datatype]] = None) -> str:
    return generate_x86_64(parse_tokens(tokenize(source)), builtins)
