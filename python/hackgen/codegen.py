# python/hackgen/codegen.py
from __future__ import annotations
from dataclasses import dataclass, field
import re
from typing import Union

from vmlang.ast import (
    Program, AnyCommand, Segment, ArithOp,
    Push, Pop, Arithmetic, Label, Goto, IfGoto, Function, Call, Return,
    BINARY_OPS, UNARY_OPS, COMPARE_OPS,
)
from vmlang.errors import TranslationError, UnknownOperatorError, MalformedOperandError, UnknownSegmentError

from .emit_asm import AsmProgram, LabelAllocator
from .segments import MAX_CONSTANT, Mode, resolve

# scratch registers, outside every segment
FRAME = "R13"
RET_ADDR = "R14"

STACK_BASE = 256
# stack grows up to the heap at 2048
MAX_LOCALS = 2048 - STACK_BASE

_SYMBOL_RE = re.compile(r"^[A-Za-z_.$:][A-Za-z0-9_.$:]*$")

_BINARY = {
    ArithOp.ADD: "M=D+M",
    ArithOp.SUB: "M=M-D",
    ArithOp.AND: "M=D&M",
    ArithOp.OR: "M=D|M",
}
_UNARY = {
    ArithOp.NEG: "M=-M",
    ArithOp.NOT: "M=!M",
}
_JUMP = {
    ArithOp.EQ: "JEQ",
    ArithOp.GT: "JGT",
    ArithOp.LT: "JLT",
}


@dataclass
class TranslatorContext:
    program: AsmProgram = field(default_factory=AsmProgram)
    labels: LabelAllocator = field(default_factory=LabelAllocator)
    file_name: str = ""   # static segment namespace of the file being translated
    annotate: bool = False


# ----------------- helpers -----------------

def _symbol(name: str) -> str:
    if not isinstance(name, str) or not _SYMBOL_RE.match(name):
        raise MalformedOperandError(f"invalid symbol name {name!r}")
    return name

def _count(n: int, what: str, limit: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise MalformedOperandError(f"{what} must be a non-negative integer, got {n!r}")
    if n > limit:
        raise MalformedOperandError(f"{what} {n} exceeds {limit}")
    return n

def _static_symbol(ctx: TranslatorContext, index: int) -> str:
    return f"{ctx.file_name or 'Static'}.{index}"

def emit_push_d(p: AsmProgram) -> None:
    p.add("@SP", "A=M", "M=D", "@SP", "M=M+1")

def emit_pop_d(p: AsmProgram) -> None:
    p.add("@SP", "AM=M-1", "D=M")

def emit_address_to_d(p: AsmProgram, mode: Mode, base: str, index: int) -> None:
    p.add(f"@{index}", "D=A", f"@{base}")
    if mode is Mode.FIXED:
        p.add("D=D+A")
    else:
        p.add("D=D+M")

# ----------------- memory access -----------------

def emit_push(ctx: TranslatorContext, segment: Union[Segment, str], index: int) -> None:
    info = resolve(segment, index)
    p = ctx.program

    if info.mode is Mode.IMMEDIATE:
        p.add(f"@{index}", "D=A")
    elif info.mode is Mode.STATIC:
        p.add(f"@{_static_symbol(ctx, index)}", "D=M")
    elif info.mode is Mode.FIXED:
        p.add(f"@{index}", "D=A", f"@{info.base}", "A=D+A", "D=M")
    else:
        p.add(f"@{index}", "D=A", f"@{info.base}", "A=D+M", "D=M")

    emit_push_d(p)

def emit_pop(ctx: TranslatorContext, segment: Union[Segment, str], index: int) -> None:
    info = resolve(segment, index)
    p = ctx.program

    if info.mode is Mode.IMMEDIATE:
        raise UnknownSegmentError("segment 'constant' has no address to pop into")

    if info.mode is Mode.STATIC:
        emit_pop_d(p)
        p.add(f"@{_static_symbol(ctx, index)}", "M=D")
        return

    emit_address_to_d(p, info.mode, info.base, index)
    p.add(f"@{FRAME}", "M=D")
    emit_pop_d(p)
    p.add(f"@{FRAME}", "A=M", "M=D")

# ----------------- arithmetic / logic -----------------

def emit_arithmetic(ctx: TranslatorContext, op: Union[ArithOp, str]) -> None:
    if not isinstance(op, ArithOp):
        try:
            op = ArithOp(op)
        except ValueError:
            raise UnknownOperatorError(f"unknown operator {op!r}") from None
    p = ctx.program

    if op in BINARY_OPS:
        emit_pop_d(p)
        p.add("A=A-1", _BINARY[op])
    elif op in UNARY_OPS:
        p.add("@SP", "A=M-1", _UNARY[op])
    elif op in COMPARE_OPS:
        true_lab, end_lab = ctx.labels.compare_pair()
        emit_pop_d(p)
        p.add("A=A-1", "D=M-D", f"@{true_lab}", f"D;{_JUMP[op]}")
        p.add("@SP", "A=M-1", "M=0", f"@{end_lab}", "0;JMP")
        p.label(true_lab)
        p.add("@SP", "A=M-1", "M=-1")
        p.label(end_lab)
    else:
        raise UnknownOperatorError(f"unsupported operator {op.value!r}")

# ----------------- control flow -----------------

def emit_label(ctx: TranslatorContext, name: str) -> None:
    ctx.program.label(_symbol(name))

def emit_goto(ctx: TranslatorContext, name: str) -> None:
    ctx.program.add(f"@{_symbol(name)}", "0;JMP")

def emit_if_goto(ctx: TranslatorContext, name: str) -> None:
    target = _symbol(name)
    emit_pop_d(ctx.program)
    ctx.program.add(f"@{target}", "D;JNE")

# ----------------- functions -----------------

def emit_function(ctx: TranslatorContext, name: str, n_locals: int) -> None:
    name = _symbol(name)
    n_locals = _count(n_locals, "local count", MAX_LOCALS)
    p = ctx.program
    p.label(name)
    for _ in range(n_locals):
        p.add("@SP", "A=M", "M=0", "@SP", "M=M+1")

def emit_call(ctx: TranslatorContext, name: str, n_args: int) -> None:
    name = _symbol(name)
    n_args = _count(n_args, "argument count", MAX_CONSTANT)
    p = ctx.program
    ret = ctx.labels.return_label()

    p.add(f"@{ret}", "D=A")
    emit_push_d(p)
    for reg in ("LCL", "ARG", "THIS", "THAT"):
        p.add(f"@{reg}", "D=M")
        emit_push_d(p)

    # ARG = SP - 5 - n_args
    p.add("@SP", "D=M", "@5", "D=D-A", f"@{n_args}", "D=D-A", "@ARG", "M=D")
    # LCL = SP
    p.add("@SP", "D=M", "@LCL", "M=D")
    p.add(f"@{name}", "0;JMP")
    p.label(ret)

def emit_return(ctx: TranslatorContext) -> None:
    p = ctx.program
    p.add("@LCL", "D=M", f"@{FRAME}", "M=D")
    # return address sits 5 words below the frame
    p.add("@5", "A=D-A", "D=M", f"@{RET_ADDR}", "M=D")
    emit_pop_d(p)
    p.add("@ARG", "A=M", "M=D")
    p.add("@ARG", "D=M+1", "@SP", "M=D")
    for reg in ("THAT", "THIS", "ARG", "LCL"):
        p.add(f"@{FRAME}", "AM=M-1", "D=M", f"@{reg}", "M=D")
    p.add(f"@{RET_ADDR}", "A=M", "0;JMP")

def emit_bootstrap(ctx: TranslatorContext) -> None:
    ctx.program.add(f"@{STACK_BASE}", "D=A", "@SP", "M=D")
    emit_call(ctx, "Sys.init", 0)

# ----------------- dispatch -----------------

def translate_command(ctx: TranslatorContext, cmd: AnyCommand) -> None:
    try:
        if isinstance(cmd, Push):
            emit_push(ctx, cmd.segment, cmd.index)
        elif isinstance(cmd, Pop):
            emit_pop(ctx, cmd.segment, cmd.index)
        elif isinstance(cmd, Arithmetic):
            emit_arithmetic(ctx, cmd.op)
        elif isinstance(cmd, Label):
            emit_label(ctx, cmd.name)
        elif isinstance(cmd, Goto):
            emit_goto(ctx, cmd.name)
        elif isinstance(cmd, IfGoto):
            emit_if_goto(ctx, cmd.name)
        elif isinstance(cmd, Function):
            emit_function(ctx, cmd.name, cmd.n_locals)
        elif isinstance(cmd, Call):
            emit_call(ctx, cmd.name, cmd.n_args)
        elif isinstance(cmd, Return):
            emit_return(ctx)
        else:
            raise TypeError(f"not a VM command: {cmd!r}")
    except TranslationError as e:
        pos = getattr(cmd, "pos", None)
        if pos is not None:
            e.at(pos.line, pos.text)
        raise

def translate_program(ctx: TranslatorContext, program: Program) -> AsmProgram:
    """
    Append the translation of one VM file to ctx.program.
    Call repeatedly on the same context to link several files into one output;
    labels stay unique because the allocator is never reset.
    """
    ctx.file_name = program.source
    for cmd in program.commands:
        if ctx.annotate and cmd.pos is not None:
            ctx.program.comment(cmd.pos.text)
        translate_command(ctx, cmd)
    return ctx.program
