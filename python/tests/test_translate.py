import pytest

from vmlang.ast import Push, Segment, SrcPos
from vmlang.errors import UnknownSegmentError
from vmlang.parser import parse_text
from hackgen.codegen import TranslatorContext, translate_command, translate_program

from hack_sim import HackCPU, assemble, translate

PROGRAM = """
function Main.main 2
push constant 3
push constant 4
gt
pop local 0
push constant 8
push constant 8
eq
if-goto SAME
call Main.helper 0
label SAME
push local 0
return
function Main.helper 0
push constant 1
push constant 2
lt
return
"""


def test_determinism():
    assert translate(PROGRAM) == translate(PROGRAM)


def test_every_line_is_legal_hack():
    # assemble() rejects non-canonical comp/dest/jump fields
    rom, _ = assemble(translate(PROGRAM))
    assert rom


def test_output_has_no_blank_lines_or_comments():
    lines = translate(PROGRAM)
    assert all(ln and not ln.startswith("//") for ln in lines)


def test_labels_unique_across_files():
    ctx = TranslatorContext()
    for name in ("A", "B", "C"):
        res = parse_text("push constant 1\npush constant 2\nlt\ncall X.f 0\n", source=name)
        translate_program(ctx, res.program)
    defined = [ln for ln in ctx.program.lines if ln.startswith("(")]
    assert len(defined) == len(set(defined)) == 9
    assert ctx.labels.counter == 6
    HackCPU(ctx.program.lines)  # assembles without duplicate-label errors


def test_static_per_file():
    ctx = TranslatorContext()
    translate_program(ctx, parse_text("push constant 1\npop static 0", source="A").program)
    translate_program(ctx, parse_text("push constant 2\npop static 0", source="B").program)
    cpu = HackCPU(ctx.program.lines, {0: 256}).run()
    assert cpu.peek(cpu.symbols["A.0"]) == 1
    assert cpu.peek(cpu.symbols["B.0"]) == 2


def test_annotate_prefixes_commands():
    ctx = TranslatorContext(annotate=True)
    translate_program(ctx, parse_text("push constant 1   // one\nneg", source="T").program)
    assert ctx.program.lines[0] == "// push constant 1   // one"
    assert "// neg" in ctx.program.lines
    # comments are ignored by the assembler
    cpu = HackCPU(ctx.program.lines, {0: 256}).run()
    assert cpu.top() == -1


def test_dispatch_error_carries_position():
    ctx = TranslatorContext()
    cmd = Push(segment="heap", index=0, pos=SrcPos(line=7, text="push heap 0"))
    with pytest.raises(UnknownSegmentError) as info:
        translate_command(ctx, cmd)
    assert info.value.line == 7
    assert info.value.text == "push heap 0"


def test_dispatch_rejects_non_commands():
    with pytest.raises(TypeError):
        translate_command(TranslatorContext(), ("push", "constant", 1))


def test_stack_depth_per_command_kind():
    base = "push constant 6\npush constant 3\n"
    cases = {"add": 257, "sub": 257, "and": 257, "or": 257,
             "eq": 257, "gt": 257, "lt": 257, "neg": 258, "not": 258,
             "push constant 1": 259, "pop temp 0": 257}
    for cmd, depth in cases.items():
        cpu = HackCPU(translate(base + cmd), {0: 256}).run()
        assert cpu.sp == depth, cmd


def test_push_on_segment_enum_matches_string():
    assert translate("push local 1") == translate("push   local   1")
    assert Push(Segment.LOCAL, 1) == Push(Segment.LOCAL, 1, pos=SrcPos(3, "x"))
