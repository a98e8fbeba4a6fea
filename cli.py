"""bpc: compile a BP source file to C, then build and run it."""
import argparse, logging, os, sys

import toolchain
from lexer import tokenize
from parser import parse
from orchestrator import compile_source
from models import CompileError

log = logging.getLogger("bpc")

MODE = os.getenv("BP_MODE", "strict")

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bpc", description="BP to C compiler")
    p.add_argument("source", nargs="?", default="main.bp", help="BP source file (default: main.bp)")
    p.add_argument("-o", "--output", default="main.c", help="generated C file (default: main.c)")
    p.add_argument("-b", "--binary", default=None, help="built executable (default: output without .c)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="strict", action="store_true", default=(MODE != "lenient"),
                      help="stop at the first diagnostic")
    mode.add_argument("--lenient", dest="strict", action="store_false",
                      help="report all diagnostics and emit best-effort code")
    p.add_argument("--cc", default=None, help=f"C compiler (default: {toolchain.CC})")
    p.add_argument("--emit-only", action="store_true", help="write the C file, skip build and run")
    p.add_argument("--no-run", action="store_true", help="build but do not run")
    p.add_argument("--dump-tokens", action="store_true", help="print the token stream")
    p.add_argument("--dump-ast", action="store_true", help="print the AST")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p

def dump(source: str, args) -> None:
    try:
        tokens, _ = tokenize(source, strict=args.strict)
        if args.dump_tokens:
            print("Tokens:", " ".join(t.type if not t.lexeme else f"{t.type}({t.lexeme})" for t in tokens))
        if args.dump_ast:
            program, _ = parse(tokens, strict=args.strict)
            print("AST:", program.model_dump_json(indent=2))
    except CompileError as e:
        # reported by the compile step
        log.debug("dump stopped: %s", e)

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        with open(args.source, "r", encoding="utf-8") as fh:
            source = fh.read()
    except OSError as e:
        print(f"bpc: cannot read {args.source}: {e.strerror}", file=sys.stderr)
        return 1

    if args.dump_tokens or args.dump_ast:
        dump(source, args)

    result = compile_source(source, strict=args.strict)
    for d in result.diagnostics:
        print(f"{args.source}: {'error' if args.strict else 'warning'}: {d}", file=sys.stderr)
    if not result.ok:
        return 1

    with open(args.output, "w", encoding="utf-8") as fh:
        fh.write(result.code)
    log.info("wrote %s", args.output)
    if args.emit_only:
        return 0

    binary = args.binary or os.path.splitext(args.output)[0]
    try:
        warnings = toolchain.build(args.output, binary, cc=args.cc)
        sys.stderr.write(warnings)
        if args.no_run:
            return 0
        sys.stdout.write(toolchain.run(binary))
    except toolchain.BuildError as e:
        sys.stderr.write(e.stderr)
        print(f"bpc: {e}", file=sys.stderr)
        return 1
    except toolchain.RunError as e:
        sys.stdout.write(e.stdout)
        print(f"bpc: {e}", file=sys.stderr)
        return e.returncode if e.returncode > 0 else 1
    except toolchain.ToolchainError as e:
        print(f"bpc: {e}", file=sys.stderr)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
