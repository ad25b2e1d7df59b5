# python/hackgen/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from vmlang.parser import parse_text
from vmlang.errors import TranslationError

from .codegen import TranslatorContext, emit_bootstrap, translate_program

PROG = "vm2hack"


def collect_sources(inp: Path) -> List[Path]:
    if inp.is_dir():
        return sorted(p for p in inp.iterdir() if p.suffix == ".vm" and p.is_file())
    return [inp]


def default_output(inp: Path) -> Path:
    if inp.is_dir():
        d = inp.resolve()
        return d / f"{d.name}.asm"
    return inp.with_suffix(".asm")


def _log(args: argparse.Namespace, msg: str) -> None:
    if not args.quiet:
        print(f"[{PROG}] {msg}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog=PROG,
        description="Translate stack VM code (.vm) into Hack assembly (.asm)",
    )
    ap.add_argument("input", help="Input .vm file or directory of .vm files")
    ap.add_argument("-o", "--output", help="Output .asm file (default: derived from input)")
    boot = ap.add_mutually_exclusive_group()
    boot.add_argument("--bootstrap", dest="bootstrap", action="store_true", default=None,
                      help="Emit SP=256 / call Sys.init 0 before the program")
    boot.add_argument("--no-bootstrap", dest="bootstrap", action="store_false",
                      help="Never emit bootstrap code")
    ap.add_argument("--annotate", action="store_true", help="Prefix each command's code with a // comment")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only report errors")
    args = ap.parse_args(argv)

    inp = Path(args.input)
    if not inp.exists():
        print(f"[{PROG}] ERROR: input not found: {inp}", file=sys.stderr)
        return 3

    sources = collect_sources(inp)
    if not sources:
        print(f"[{PROG}] ERROR: no .vm files in {inp}", file=sys.stderr)
        return 3

    out_path = Path(args.output) if args.output else default_output(inp)

    bootstrap: Optional[bool] = args.bootstrap
    if bootstrap is None:
        bootstrap = inp.is_dir() and any(s.stem == "Sys" for s in sources)

    ctx = TranslatorContext(annotate=args.annotate)
    if bootstrap:
        emit_bootstrap(ctx)

    errors: List[str] = []
    for src in sources:
        try:
            text = src.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"[{PROG}] ERROR: cannot read {src}: {e}", file=sys.stderr)
            return 3

        res = parse_text(text, source=src.stem)
        if res.errors:
            for e in res.errors:
                errors.append(f"[{e.kind}] {src.name}: line={e.line}: {e.text} ({e.message})")
            continue

        try:
            translate_program(ctx, res.program)
        except TranslationError as e:
            errors.append(f"[{e.kind}] {src.name}: line={e.line}: {e.text} ({e.message})")
            continue

        _log(args, f"translated {src.name}: {len(res.program.commands)} commands")

    if errors:
        for msg in errors:
            print(msg, file=sys.stderr)
        print(f"[{PROG}] {len(errors)} error(s), no output written", file=sys.stderr)
        return 2

    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = out_path.with_name(out_path.name + ".tmp")
    try:
        ctx.program.save(tmp_path)
        tmp_path.replace(out_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        print(f"[{PROG}] ERROR: cannot write {out_path}: {e}", file=sys.stderr)
        return 3

    _log(args, f"OK. asm_written={out_path.resolve()}")
    _log(args, f"lines: {len(ctx.program)}; labels allocated: {ctx.labels.counter}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
