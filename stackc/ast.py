from __future__ import annotations

import textwrap
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Tuple

# (type name, field name) pairs, in declaration order.
Properties = List[Tuple[str, str]]


class Node:
    def __str__(self) -> str:
        return render(self)


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class Scope(Node):
    body: List[Node]


@dataclass
class BinOp(Node):
    left: Node
    op: str
    right: Node


@dataclass
class Integer(Node):
    value: int


@dataclass
class Float(Node):
    value: float


@dataclass
class VarDecl(Node):
    datatype: str
    name: str
    value: Node


@dataclass
class StructDecl(Node):
    name: str
    properties: Properties


@dataclass
class StructType(Node):
    properties: Properties


@dataclass
class TypeDef(Node):
    name: str
    value: Node


@dataclass
class Identifier(Node):
    value: str


@dataclass
class StructData(Node):
    data: List[Node]


def render(node: Node) -> str:
    """Render a node back to source text.

    Output is not byte-identical to what was parsed, but lexing and parsing
    it again yields an equal tree.
    """
    if isinstance(node, Program):
        return "".join(f"{render(stmt)};\n" for stmt in node.body)
    if isinstance(node, Scope):
        inner = "".join(f"{render(stmt)};\n" for stmt in node.body)
        return "{\n" + textwrap.indent(inner, "    ") + "}"
    if isinstance(node, BinOp):
        return _render_binop(node)
    if isinstance(node, Integer):
        return str(node.value)
    if isinstance(node, Float):
        return _render_float(node.value)
    if isinstance(node, VarDecl):
        return f"{node.datatype} {node.name} = {render(node.value)}"
    if isinstance(node, StructDecl):
        return f"struct {node.name} {_render_fields(node.properties)}"
    if isinstance(node, StructType):
        return f"struct {_render_fields(node.properties)}"
    if isinstance(node, TypeDef):
        return f"typedef {render(node.value)} {node.name}"
    if isinstance(node, Identifier):
        return node.value
    if isinstance(node, StructData):
        return "{" + ", ".join(render(element) for element in node.data) + "}"
    raise ValueError(f"Unhandled node {node!r}")


def _render_binop(node: BinOp) -> str:
    # Walk the left spine iteratively; long chains would exhaust the stack.
    tail: List[str] = []
    left: Node = node
    while isinstance(left, BinOp):
        tail.append(f" {left.op} {render(left.right)}")
        left = left.left
    return render(left) + "".join(reversed(tail))


def _render_fields(properties: Properties) -> str:
    fields = "".join(f"    {type_name} {name};\n" for type_name, name in properties)
    return "{\n" + fields + "}"


def _render_float(value: float) -> str:
    # The lexer has no exponent syntax, so always spell the number out.
    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text
