from __future__ import annotations

from dataclasses import dataclass
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional
from lark import Lark, Transformer, exceptions

from .ast import *
from .errors import (
    TranslationError, UnknownSegmentError, UnknownOperatorError,
    MalformedOperandError, ArityError, UnknownCommandError, SyntaxVMError,
)


@dataclass
class ParseResult:
    program: Optional[Program]
    errors: List[ParseError]


_COUNT_RE = re.compile(r"[0-9]{1,6}")


def parse_count(tok: str, what: str) -> int:
    # ASCII decimal only: no sign, no hex, no other Unicode digits
    if not _COUNT_RE.fullmatch(tok):
        raise MalformedOperandError(f"{what} must be a non-negative integer, got {tok!r}")
    return int(tok)


def parse_segment(tok: str) -> Segment:
    try:
        return Segment(tok)
    except ValueError:
        raise UnknownSegmentError(f"unknown segment {tok!r}") from None


def _expect(opcode: str, args: List[str], n: int) -> None:
    if len(args) != n:
        raise ArityError(f"{opcode!r} takes {n} operand(s), got {len(args)}")


class CommandBuilder(Transformer):
    def __init__(self, pos: SrcPos):
        super().__init__()
        self.pos = pos

    def start(self, items):
        return items[0] if items else None

    def command(self, items):
        words = [str(t) for t in items]
        opcode, args = words[0], words[1:]

        build = _BUILDERS.get(opcode)
        if build is not None:
            return build(self, opcode, args)

        try:
            op = ArithOp(opcode)
        except ValueError:
            # a bare word sits where an arithmetic operator would
            if not args:
                raise UnknownOperatorError(f"unknown operator {opcode!r}") from None
            raise UnknownCommandError(f"unknown command {opcode!r}") from None
        _expect(opcode, args, 0)
        return Arithmetic(op=op, pos=self.pos)

    # --- memory access ---
    def _push_pop(self, opcode, args):
        _expect(opcode, args, 2)
        seg = parse_segment(args[0])
        index = parse_count(args[1], "index")
        cls = Push if opcode == "push" else Pop
        return cls(segment=seg, index=index, pos=self.pos)

    # --- branching ---
    def _branch(self, opcode, args):
        _expect(opcode, args, 1)
        cls = {"label": Label, "goto": Goto, "if-goto": IfGoto}[opcode]
        return cls(name=args[0], pos=self.pos)

    # --- functions ---
    def _function(self, opcode, args):
        _expect(opcode, args, 2)
        return Function(name=args[0], n_locals=parse_count(args[1], "local count"), pos=self.pos)

    def _call(self, opcode, args):
        _expect(opcode, args, 2)
        return Call(name=args[0], n_args=parse_count(args[1], "argument count"), pos=self.pos)

    def _return(self, opcode, args):
        _expect(opcode, args, 0)
        return Return(pos=self.pos)


_BUILDERS: Dict[str, Callable] = {
    "push": CommandBuilder._push_pop,
    "pop": CommandBuilder._push_pop,
    "label": CommandBuilder._branch,
    "goto": CommandBuilder._branch,
    "if-goto": CommandBuilder._branch,
    "function": CommandBuilder._function,
    "call": CommandBuilder._call,
    "return": CommandBuilder._return,
}


def make_parser() -> Lark:
    grammar = Path(__file__).with_name("grammar_vm.lark").read_text(encoding="utf-8")
    return Lark(grammar, start="start", parser="lalr")


_PARSER: Optional[Lark] = None


def parse_line(line: str, lineno: int) -> Optional[Command]:
    """
    Parse one source line into a Command (None for blank/comment-only lines).
    Raises a TranslationError subclass carrying the line number and text.
    """
    global _PARSER
    if _PARSER is None:
        _PARSER = make_parser()

    text = line.strip()
    pos = SrcPos(line=lineno, text=text)
    try:
        tree = _PARSER.parse(text)
        return CommandBuilder(pos).transform(tree)
    except exceptions.VisitError as e:
        if isinstance(e.orig_exc, TranslationError):
            raise e.orig_exc.at(lineno, text) from None
        raise
    except exceptions.UnexpectedInput as e:
        raise SyntaxVMError(f"unexpected input at column {e.column}", lineno, text) from None


def parse_text(text: str, source: str = "") -> ParseResult:
    commands: List[Command] = []
    errors: List[ParseError] = []

    for lineno, line in enumerate(text.splitlines(), start=1):
        try:
            cmd = parse_line(line, lineno)
        except TranslationError as e:
            errors.append(ParseError(kind=e.kind, message=e.message, line=lineno, text=line.strip()))
            continue
        if cmd is not None:
            commands.append(cmd)

    if errors:
        return ParseResult(program=None, errors=errors)
    return ParseResult(program=Program(source=source, commands=commands), errors=[])
