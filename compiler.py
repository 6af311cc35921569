import argparse
import logging
import subprocess
import sys
from pathlib import Path

from stackc.ast import render
from stackc.codegen import generate_x86_64
from stackc.errors import CompileError
from stackc.lexer import tokenize
from stackc.parser import parse_tokens

logger = logging.getLogger("stackc")


def output_stem(source: Path, output) -> Path:
    if output is not None:
        return Path(output)
    stem = source.with_suffix("")
    if stem == source:
        stem = stem.with_name(f"_{stem.name}")
    return stem


def build(source: Path, output: Path, asm_only: bool = False) -> Path:
    text = source.read_text(encoding="utf-8")
    tokens = tokenize(text)
    for tok in tokens:
        logger.debug("[%s: %s] at %d-%d", tok.type, tok.value, tok.start, tok.end)
    prog = parse_tokens(tokens)
    logger.debug("AST:\n%s", render(prog))
    asm = generate_x86_64(prog)

    asm_path = output.with_name(output.name + ".asm")
    asm_path.write_text(asm, encoding="utf-8")
    logger.info("Wrote %s", asm_path)
    if asm_only:
        return asm_path

    obj_path = output.with_name(output.name + ".o")
    subprocess.run(["nasm", "-felf64", str(asm_path), "-o", str(obj_path)], check=True)
    subprocess.run(["ld", str(obj_path), "-o", str(output)], check=True)
    logger.info("Linked %s", output)
    return output


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="stackc compiler")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log tokens, AST and layout decisions")
    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (("build", "Compile and link an executable"), ("run", "Build, then run the executable")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("input", type=Path, help="Source file")
        cmd.add_argument("-o", "--output", type=Path, default=None, help="Output executable path")
        cmd.add_argument("--target", choices=["x86_64"], default="x86_64", help="Target ISA")
        if name == "build":
            cmd.add_argument("-S", "--asm-only", action="store_true", help="Stop after writing the .asm file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    output = output_stem(args.input, args.output)
    try:
        artifact = build(args.input, output, asm_only=getattr(args, "asm_only", False))
    except (CompileError, OSError, subprocess.CalledProcessError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.command == "run":
        proc = subprocess.run([str(artifact.resolve())])
        return proc.returncode
    print(f"Wrote {artifact}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
