from __future__ import annotations

import logging
import struct
from typing import Dict, List, Optional

from . import ast
from .errors import (
    CannotAssignSingleValuetoStruct,
    DatatypeAlreadyExists,
    TooManyInitializers,
    UnsupportedDatatypeSize,
    VariableAlreadyExists,
)
from .typesys import Datatype, Environment, Single, Struct, struct_layout

logger = logging.getLogger(__name__)

# Instructions combining the scratch register (left operand) into the
# accumulator (right operand).
BINARY_OPS: Dict[str, List[str]] = {
    "+": ["add rax, rbx"],
}

# Sized views of the accumulator: width -> (size keyword, register, sign-extending load).
WIDTHS = {
    1: ("byte", "al", "movsx rax, byte"),
    2: ("word", "ax", "movsx rax, word"),
    4: ("dword", "eax", "movsxd rax, dword"),
    8: ("qword", "rax", "mov rax, qword"),
}


class X86Codegen:
    def __init__(self, prog: ast.Program, builtins: Optional[Dict[str, Datatype]] = None):
        self.prog = prog
        self.builtins = builtins
        self.lines: List[str] = []
        self.frame_size = 0

    def compile(self) -> str:
        env = Environment.root(self.builtins)
        for stmt in self.prog.body:
            self._emit_node(stmt, env)
        body = self.lines
        self.lines = []
        self._emit_preamble()
        self.lines.extend(body)
        self._emit_exit()
        logger.debug("frame size %d bytes, %d instructions", self.frame_size, len(self.lines))
        return "\n".join(self.lines) + "\n"

    def _emit(self, line: str) -> None:
        self.lines.append(line)

    def _emit_preamble(self) -> None:
        self._emit("section .text")
        self._emit("    global _start")
        self._emit("_start:")
        self._emit("    push rbp")
        self._emit("    mov rbp, rsp")
        frame = (self.frame_size + 15) // 16 * 16
        if frame:
            self._emit(f"    sub rsp, {frame}")
        self._emit("    xor eax, eax")

    def _emit_exit(self) -> None:
        # exit(rax)
        self._emit("    mov rdi, rax")
        self._emit("    mov rax, 60")
        self._emit("    syscall")

    def _emit_node(self, node: ast.Node, env: Environment) -> None:
        if isinstance(node, ast.Integer):
            self._emit(f"    mov rax, {node.value}")
        elif isinstance(node, ast.Float):
            bits = struct.unpack("<I", struct.pack("<f", node.value))[0]
            self._emit(f"    mov rax, {bits:#x}")
        elif isinstance(node, ast.Identifier):
            binding = env.lookup_var(node.value)
            self._load(binding.location, binding.datatype.size)
        elif isinstance(node, ast.BinOp):
            self._emit_binop(node, env)
        elif isinstance(node, ast.VarDecl):
            self._emit_var_decl(node, env)
        elif isinstance(node, ast.StructDecl):
            self._declare_struct(node, env)
        elif isinstance(node, ast.TypeDef):
            self._emit_typedef(node, env)
        elif isinstance(node, ast.Scope):
            inner = env.child()
            for stmt in node.body:
                self._emit_node(stmt, inner)
        elif isinstance(node, (ast.StructType, ast.StructData)):
            # Only meaningful inside a typedef or an initializer.
            pass
        elif isinstance(node, ast.Program):
            raise ValueError("Program nodes cannot be nested")
        else:
            raise ValueError(f"Unhandled node {node!r}")

    def _emit_binop(self, node: ast.BinOp, env: Environment) -> None:
        # Chains are left-leaning, so walk the left spine iteratively.
        spine = []
        while isinstance(node, ast.BinOp):
            spine.append(node)
            node = node.left
        self._emit_node(node, env)
        for binop in reversed(spine):
            self._emit("    push rax")
            self._emit_node(binop.right, env)
            self._emit("    pop rbx")
            for instr in BINARY_OPS[binop.op]:
                self._emit(f"    {instr}")

    def _emit_var_decl(self, decl: ast.VarDecl, env: Environment) -> None:
        if env.has_local_var(decl.name):
            raise VariableAlreadyExists(f"Variable '{decl.name}' already declared in this scope")
        datatype = env.lookup_datatype(decl.datatype)
        binding = env.reserve(decl.name, datatype)
        self.frame_size = max(self.frame_size, binding.location)
        logger.debug("variable %s: %s at rbp-%d", decl.name, decl.datatype, binding.location)

        if isinstance(decl.value, ast.StructData):
            if isinstance(datatype, Single):
                raise CannotAssignSingleValuetoStruct(
                    f"Cannot initialize '{decl.name}' of scalar type '{decl.datatype}' with a struct literal"
                )
            self._emit_struct_init(decl.value, datatype, binding.location, env)
        else:
            self._emit_node(decl.value, env)
            self._store(binding.location, datatype.size)

    def _emit_struct_init(self, data: ast.StructData, datatype: Struct, location: int, env: Environment) -> None:
        if len(data.data) > len(datatype.offsets):
            raise TooManyInitializers(
                f"Struct literal has {len(data.data)} values but the struct has {len(datatype.offsets)} fields"
            )
        for element, (_, offset), member in zip(data.data, datatype.offsets, datatype.members):
            field_location = location - datatype.size + offset
            if isinstance(element, ast.StructData):
                if not isinstance(member, Struct):
                    raise CannotAssignSingleValuetoStruct("Cannot initialize a scalar field with a struct literal")
                self._emit_struct_init(element, member, field_location, env)
            else:
                self._emit_node(element, env)
                self._store(field_location, member.size)

    def _declare_struct(self, decl: ast.StructDecl, env: Environment) -> Struct:
        if env.resolve_datatype(decl.name) is not None:
            raise DatatypeAlreadyExists(f"Type '{decl.name}' already exists")
        layout = struct_layout(decl.properties, env)
        env.declare_datatype(decl.name, layout)
        logger.debug("struct %s: size %d, offsets %s", decl.name, layout.size, layout.offsets)
        return layout

    def _emit_typedef(self, typedef: ast.TypeDef, env: Environment) -> None:
        if env.resolve_datatype(typedef.name) is not None:
            raise DatatypeAlreadyExists(f"Type '{typedef.name}' already exists")
        value = typedef.value
        if isinstance(value, ast.StructType):
            datatype: Datatype = struct_layout(value.properties, env)
        elif isinstance(value, ast.Identifier):
            datatype = env.lookup_datatype(value.value)
        elif isinstance(value, ast.StructDecl):
            datatype = self._declare_struct(value, env)
        else:
            logger.warning("typedef %s of %s registers an empty placeholder type", typedef.name, value)
            datatype = Single(0)
        env.declare_datatype(typedef.name, datatype)
        logger.debug("typedef %s: %s", typedef.name, datatype)

    def _width(self, size: int):
        # Aggregates wider than a register move their lowest qword, which stays inside the slot.
        if size in WIDTHS:
            return WIDTHS[size]
        if size > 8:
            return WIDTHS[8]
        raise UnsupportedDatatypeSize(f"No load/store width for a {size}-byte value")

    def _store(self, location: int, size: int) -> None:
        if size == 0:
            return
        keyword, reg, _ = self._width(size)
        self._emit(f"    mov {keyword} [rbp-{location}], {reg}")

    def _load(self, location: int, size: int) -> None:
        if size == 0:
            self._emit("    xor eax, eax")
            return
        _, _, load = self._width(size)
        self._emit(f"    {load} [rbp-{location}]")


def generate_x86_64(prog: ast.Program, builtins: Optional[Dict[str, Datatype]] = None) -> str:
    return X86Codegen(prog, builtins).compile()
