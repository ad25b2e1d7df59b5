from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

@dataclass(frozen=True)
class SrcPos:
    line: int
    text: str

@dataclass
class ParseError:
    kind: str
    message: str
    line: int
    text: str

# ---- Segments / operators ----
class Segment(Enum):
    LOCAL = "local"
    ARGUMENT = "argument"
    THIS = "this"
    THAT = "that"
    TEMP = "temp"
    POINTER = "pointer"
    CONSTANT = "constant"
    STATIC = "static"

class ArithOp(Enum):
    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"

BINARY_OPS = (ArithOp.ADD, ArithOp.SUB, ArithOp.AND, ArithOp.OR)
UNARY_OPS = (ArithOp.NEG, ArithOp.NOT)
COMPARE_OPS = (ArithOp.EQ, ArithOp.GT, ArithOp.LT)

# ---- Commands ----
class Command: pass

@dataclass(frozen=True)
class Push(Command):
    segment: Segment
    index: int
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Pop(Command):
    segment: Segment
    index: int
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Arithmetic(Command):
    op: ArithOp
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Label(Command):
    name: str
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Goto(Command):
    name: str
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class IfGoto(Command):
    name: str
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Function(Command):
    name: str
    n_locals: int
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Call(Command):
    name: str
    n_args: int
    pos: Optional[SrcPos] = field(default=None, compare=False)

@dataclass(frozen=True)
class Return(Command):
    pos: Optional[SrcPos] = field(default=None, compare=False)

AnyCommand = Union[Push, Pop, Arithmetic, Label, Goto, IfGoto, Function, Call, Return]

# ---- Program ----
@dataclass
class Program:
    source: str  # file stem, names the static segment
    commands: List[Command]
