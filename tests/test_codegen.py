"""Code generator tests."""

import logging

import pytest

from stackc import ast, compile_source
from stackc.codegen import generate_x86_64
from stackc.errors import (
    CannotAssignSingleValuetoStruct,
    DatatypeAlreadyExists,
    DatatypeDoesNotExist,
    TooManyInitializers,
    UnsupportedDatatypeSize,
    VariableAlreadyExists,
    VariableDoesNotExist,
)
from stackc.typesys import Single

EXIT = ["    mov rdi, rax", "    mov rax, 60", "    syscall"]


def lines(source: str) -> list[str]:
    return compile_source(source).splitlines()


def test_addition_program():
    assert lines("1 + 2;") == [
        "section .text",
        "    global _start",
        "_start:",
        "    push rbp",
        "    mov rbp, rsp",
        "    xor eax, eax",
        "    mov rax, 1",
        "    push rax",
        "    mov rax, 2",
        "    pop rbx",
        "    add rax, rbx",
    ] + EXIT


def test_output_ends_with_exit():
    asm = compile_source("int x = 5;")
    assert asm.endswith("\n")
    assert asm.splitlines()[-3:] == EXIT


def test_float_loads_single_precision_bits():
    assert "    mov rax, 0x3fc00000" in lines("1.5;")


def test_var_decl_stores_and_loads_by_width():
    out = lines("int x = 1 + 2; int y = 0 + x;")
    assert "    sub rsp, 16" in out
    assert "    mov dword [rbp-4], eax" in out
    assert "    movsxd rax, dword [rbp-4]" in out
    assert out[-len(EXIT) - 1] == "    mov dword [rbp-8], eax"


def test_duplicate_variable_same_scope():
    with pytest.raises(VariableAlreadyExists):
        compile_source("int x = 1; int x = 2;")


def test_duplicate_variable_in_nested_scope_shadows():
    out = lines("int x = 1; { int x = 2; 0 + x; };")
    assert "    mov dword [rbp-4], eax" in out
    assert "    mov dword [rbp-8], eax" in out
    assert "    movsxd rax, dword [rbp-8]" in out
    assert "    movsxd rax, dword [rbp-4]" not in out


def test_scope_bindings_are_discarded():
    with pytest.raises(VariableDoesNotExist):
        compile_source("{ int x = 1; }; int y = x;")


def test_sibling_scopes_reuse_stack():
    out = lines("int a = 1; { int b = 2; }; { int c = 3; };")
    assert out.count("    mov dword [rbp-8], eax") == 2
    assert "    sub rsp, 16" in out


def test_undeclared_identifier():
    with pytest.raises(VariableDoesNotExist):
        compile_source("int y = x;")


def test_unknown_datatype():
    with pytest.raises(DatatypeDoesNotExist):
        compile_source("long y = 1;")


def test_struct_literal_into_scalar():
    with pytest.raises(CannotAssignSingleValuetoStruct):
        compile_source("int x = {1, 2};")


def test_struct_initializer_offsets():
    out = lines("struct vec2 { int x; int y; }; vec2 v = {1, 2};")
    body = out[out.index("    xor eax, eax") + 1 : -len(EXIT)]
    assert body == [
        "    mov rax, 1",
        "    mov dword [rbp-4], eax",
        "    mov rax, 2",
        "    mov dword [rbp-8], eax",
    ]


def test_struct_after_scalar():
    out = lines("int a = 7; typedef struct { int x; int y; } vec2; vec2 v = {1, 2};")
    assert "    mov dword [rbp-8], eax" in out
    assert "    mov dword [rbp-12], eax" in out
    assert "    sub rsp, 16" in out


def test_struct_partial_initializer():
    out = lines("struct vec2 { int x; int y; }; vec2 v = {1};")
    assert "    mov dword [rbp-4], eax" in out
    assert "    mov dword [rbp-8], eax" not in out


def test_struct_too_many_initializers():
    with pytest.raises(TooManyInitializers):
        compile_source("struct vec2 { int x; int y; }; vec2 v = {1, 2, 3};")


def test_nested_struct_initializer():
    source = """
    struct vec2 { int x; int y; };
    struct line { vec2 a; vec2 b; };
    line l = {{1, 2}, {3, 4}};
    """
    out = lines(source)
    stores = [line for line in out if line.startswith("    mov dword")]
    assert stores == [
        "    mov dword [rbp-4], eax",
        "    mov dword [rbp-8], eax",
        "    mov dword [rbp-12], eax",
        "    mov dword [rbp-16], eax",
    ]


def test_struct_literal_into_scalar_field():
    with pytest.raises(CannotAssignSingleValuetoStruct):
        compile_source("struct vec2 { int x; int y; }; vec2 v = {{1}, 2};")


def test_struct_declaration_emits_no_code():
    with_decl = lines("struct vec2 { int x; int y; }; 1;")
    without = lines("1;")
    assert with_decl == without


def test_struct_redeclared():
    with pytest.raises(DatatypeAlreadyExists):
        compile_source("struct vec2 { int x; }; struct vec2 { int y; };")


def test_struct_cannot_shadow_outer_type():
    with pytest.raises(DatatypeAlreadyExists):
        compile_source("{ struct int { int x; }; };")


def test_typedef_name_taken():
    with pytest.raises(DatatypeAlreadyExists):
        compile_source("typedef struct { int a; } int;")


def test_typedef_alias():
    assert "    mov dword [rbp-4], eax" in lines("typedef int length; length n = 7;")


def test_typedef_alias_of_unknown_type():
    with pytest.raises(DatatypeDoesNotExist):
        compile_source("typedef meters length;")


def test_typedef_of_named_struct_declares_both():
    out = lines("typedef struct point { int x; int y; } pt; point a = {1, 2}; pt b = {3, 4};")
    assert "    mov dword [rbp-16], eax" in out


def test_typedef_placeholder(caplog):
    prog = ast.Program(
        [
            ast.TypeDef("nothing", ast.Integer(1)),
            ast.VarDecl("nothing", "n", ast.Integer(3)),
            ast.Identifier("n"),
        ]
    )
    with caplog.at_level(logging.WARNING, logger="stackc.codegen"):
        out = generate_x86_64(prog).splitlines()
    assert "placeholder" in caplog.text
    assert "    mov rax, 3" in out
    assert not any("[rbp-" in line for line in out)
    assert out[-len(EXIT) - 1] == "    xor eax, eax"


def test_types_declared_in_scope_are_local():
    with pytest.raises(DatatypeDoesNotExist):
        compile_source("{ struct vec2 { int x; }; }; vec2 v = {1};")


def test_custom_builtins():
    prog = ast.Program([ast.VarDecl("long", "x", ast.Integer(1))])
    out = generate_x86_64(prog, {"long": Single(8)}).splitlines()
    assert "    mov qword [rbp-8], rax" in out
    with pytest.raises(DatatypeDoesNotExist):
        generate_x86_64(ast.Program([ast.VarDecl("int", "x", ast.Integer(1))]), {"long": Single(8)})


def test_first_error_aborts():
    with pytest.raises(VariableDoesNotExist):
        compile_source("int a = b; int a = 1;")


def test_long_addition_chain():
    out = lines(" + ".join(["1"] * 5000) + ";")
    assert out.count("    add rax, rbx") == 4999
    assert out.count("    push rax") == out.count("    pop rbx") == 4999
    assert out[-len(EXIT) - 1] == "    add rax, rbx"


def test_largest_float32_literal():
    assert "    mov rax, 0x7f7fffff" in lines("340282346638528859811704183484516925440.0;")


def test_scalar_without_register_width():
    prog = ast.Program([ast.VarDecl("byte3", "b", ast.Integer(1))])
    with pytest.raises(UnsupportedDatatypeSize):
        generate_x86_64(prog, {"byte3": Single(3)})


def test_wide_struct_moves_lowest_qword():
    source = "struct quad { int a; int b; int c; int d; }; quad q = 0 + 0;"
    assert "    mov qword [rbp-16], rax" in lines(source)
