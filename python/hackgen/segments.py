# python/hackgen/segments.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from vmlang.ast import Segment
from vmlang.errors import UnknownSegmentError, MalformedOperandError

# largest value an A-instruction can load
MAX_CONSTANT = 0x7FFF


class Mode(Enum):
    POINTER = "pointer-indirect"  # RAM[base] + index
    FIXED = "fixed-offset"        # base + index
    IMMEDIATE = "immediate"       # index itself
    STATIC = "static"             # <file>.<index> assembler variable


@dataclass(frozen=True)
class SegmentInfo:
    mode: Mode
    base: Optional[str] = None
    size: Optional[int] = None  # number of addressable words, None = unbounded


def segment_info(seg: Segment) -> SegmentInfo:
    if seg is Segment.LOCAL:
        return SegmentInfo(Mode.POINTER, "LCL")
    if seg is Segment.ARGUMENT:
        return SegmentInfo(Mode.POINTER, "ARG")
    if seg is Segment.THIS:
        return SegmentInfo(Mode.POINTER, "THIS")
    if seg is Segment.THAT:
        return SegmentInfo(Mode.POINTER, "THAT")
    if seg is Segment.TEMP:
        # R5..R12; R13/R14 stay free as scratch registers
        return SegmentInfo(Mode.FIXED, "5", size=8)
    if seg is Segment.POINTER:
        # THIS, THAT
        return SegmentInfo(Mode.FIXED, "3", size=2)
    if seg is Segment.CONSTANT:
        return SegmentInfo(Mode.IMMEDIATE, size=MAX_CONSTANT + 1)
    if seg is Segment.STATIC:
        return SegmentInfo(Mode.STATIC, size=240)  # RAM[16..255]
    raise UnknownSegmentError(f"unknown segment {seg!r}")


def resolve(segment: Union[Segment, str], index: int) -> SegmentInfo:
    """
    Validate a (segment, index) pair and return its table entry.
    Accepts the segment as enum member or its VM spelling.
    """
    if not isinstance(segment, Segment):
        try:
            segment = Segment(segment)
        except ValueError:
            raise UnknownSegmentError(f"unknown segment {segment!r}") from None

    info = segment_info(segment)

    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise MalformedOperandError(f"index must be a non-negative integer, got {index!r}")
    if info.size is not None and index >= info.size:
        raise MalformedOperandError(
            f"index {index} out of range for segment {segment.value!r} (size {info.size})"
        )
    return info
