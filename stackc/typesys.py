from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from . import ast
from .errors import (
    DatatypeAlreadyExists,
    DatatypeDoesNotExist,
    VariableAlreadyExists,
    VariableDoesNotExist,
)


@dataclass(frozen=True)
class Single:
    size: int


@dataclass(frozen=True)
class Struct:
    size: int
    offsets: Tuple[Tuple[str, int], ...]
    members: Tuple["Datatype", ...] = ()


Datatype = Union[Single, Struct]


@dataclass
class VariableBinding:
    datatype: Datatype
    location: int


BUILTINS: Dict[str, Datatype] = {
    "int": Single(4),
}


class Environment:
    """One lexical scope in the chain used during code generation.

    Lookups walk outward through ``parent``; declarations only ever touch
    this scope's own tables. ``base_stack`` is where this scope's stack
    allocations start, i.e. everything below it belongs to enclosing scopes.
    """

    def __init__(
        self,
        parent: Optional[Environment] = None,
        base_stack: int = 0,
        datatypes: Optional[Dict[str, Datatype]] = None,
    ):
        self.parent = parent
        self.base_stack = base_stack
        self.variables: Dict[str, VariableBinding] = {}
        self.datatypes: Dict[str, Datatype] = dict(datatypes or {})

    @classmethod
    def root(cls, builtins: Optional[Dict[str, Datatype]] = None) -> Environment:
        return cls(datatypes=BUILTINS if builtins is None else builtins)

    def child(self) -> Environment:
        return Environment(parent=self, base_stack=self.top_stack)

    def consumed(self) -> int:
        return sum(var.datatype.size for var in self.variables.values())

    @property
    def top_stack(self) -> int:
        return self.base_stack + self.consumed()

    def has_local_var(self, name: str) -> bool:
        return name in self.variables

    def declare_var(self, name: str, binding: VariableBinding) -> None:
        if name in self.variables:
            raise VariableAlreadyExists(f"Variable '{name}' already declared in this scope")
        self.variables[name] = binding

    def reserve(self, name: str, datatype: Datatype) -> VariableBinding:
        binding = VariableBinding(datatype, self.top_stack + datatype.size)
        self.declare_var(name, binding)
        return binding

    def resolve_var(self, name: str) -> Optional[Environment]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.variables:
                return env
            env = env.parent
        return None

    def lookup_var(self, name: str) -> VariableBinding:
        env = self.resolve_var(name)
        if env is None:
            raise VariableDoesNotExist(f"Unknown variable '{name}'")
        return env.variables[name]

    def declare_datatype(self, name: str, datatype: Datatype) -> None:
        if name in self.datatypes:
            raise DatatypeAlreadyExists(f"Type '{name}' already declared in this scope")
        self.datatypes[name] = datatype

    def resolve_datatype(self, name: str) -> Optional[Environment]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.datatypes:
                return env
            env = env.parent
        return None

    def lookup_datatype(self, name: str) -> Datatype:
        env = self.resolve_datatype(name)
        if env is None:
            raise DatatypeDoesNotExist(f"Unknown type '{name}'")
        return env.datatypes[name]


def struct_layout(properties: ast.Properties, env: Environment) -> Struct:
    """Lay out struct fields back to back, in declaration order, no padding.

    A field's offset is the running total including its own size, so for
    ``struct { int x; int y; }`` we get ``x@4, y@8`` and size 8.
    """
    offsets = []
    members = []
    offset = 0
    for type_name, field_name in properties:
        datatype = env.lookup_datatype(type_name)
        offset += datatype.size
        offsets.append((field_name, offset))
        members.append(datatype)
    return Struct(offset, tuple(offsets), tuple(members))
