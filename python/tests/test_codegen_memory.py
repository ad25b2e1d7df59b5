import pytest

from vmlang.ast import Segment
from vmlang.errors import UnknownSegmentError, MalformedOperandError
from hackgen.codegen import TranslatorContext, emit_push, emit_pop

from hack_sim import HackCPU, DEFAULT_RAM, run_vm, translate


def test_push_constant():
    cpu = run_vm("push constant 17")
    assert cpu.sp == 257
    assert cpu.top() == 17


@pytest.mark.parametrize(
    "segment, base_reg",
    [("local", 1), ("argument", 2), ("this", 3), ("that", 4)],
)
def test_push_pointer_segments_dereference_base(segment, base_reg):
    base = DEFAULT_RAM[base_reg]
    cpu = run_vm(f"push {segment} 3", ram={base + 3: 42})
    assert cpu.sp == 257
    assert cpu.top() == 42


def test_push_temp_and_pointer_use_fixed_bases():
    cpu = run_vm("push temp 6\npush pointer 1", ram={11: 99})
    assert cpu.sp == 258
    assert cpu.top(1) == 99
    assert cpu.top() == DEFAULT_RAM[4]  # pointer 1 is THAT


def test_pop_local_then_push_local_round_trip():
    cpu = run_vm("push constant 123\npop local 2\npush local 2")
    assert cpu.sp == 257
    assert cpu.top() == 123
    assert cpu.peek(DEFAULT_RAM[1] + 2) == 123


def test_pop_writes_exactly_one_location():
    before = HackCPU([], DEFAULT_RAM)
    cpu = run_vm("push constant 5\npop that 4")
    assert cpu.sp == 256
    changed = [
        addr for addr in range(len(cpu.ram))
        if cpu.ram[addr] != before.ram[addr] and addr not in (0, 13, 256)
    ]
    assert changed == [DEFAULT_RAM[4] + 4]


def test_pop_pointer_rebinds_this_and_that():
    cpu = run_vm("push constant 5000\npop pointer 0\npush constant 6000\npop pointer 1\n"
                 "push constant 7\npop this 2\npush constant 8\npop that 1")
    assert cpu.peek(3) == 5000
    assert cpu.peek(4) == 6000
    assert cpu.peek(5002) == 7
    assert cpu.peek(6001) == 8


def test_pop_temp():
    cpu = run_vm("push constant 9\npop temp 7")
    assert cpu.peek(12) == 9
    assert cpu.sp == 256


def test_static_is_namespaced_by_file():
    lines = translate("push constant 4\npop static 3\npush static 3", name="Counter")
    assert "@Counter.3" in lines
    cpu = HackCPU(lines, DEFAULT_RAM).run()
    assert cpu.top() == 4
    assert cpu.peek(cpu.symbols["Counter.3"]) == 4


def test_scratch_register_not_a_segment():
    cpu = run_vm("push constant 1\npop local 0", ram={5: 11, 6: 12, 12: 13})
    # temp segment untouched by the pop's scratch use
    assert [cpu.peek(a) for a in (5, 6, 12)] == [11, 12, 13]


def test_unknown_segment_string_rejected():
    ctx = TranslatorContext()
    with pytest.raises(UnknownSegmentError):
        emit_push(ctx, "heap", 0)
    with pytest.raises(UnknownSegmentError):
        emit_pop(ctx, "heap", 0)
    assert ctx.program.lines == []


def test_pop_constant_rejected():
    with pytest.raises(UnknownSegmentError):
        emit_pop(TranslatorContext(), Segment.CONSTANT, 1)


@pytest.mark.parametrize(
    "segment, index",
    [(Segment.TEMP, 8), (Segment.POINTER, 2), (Segment.CONSTANT, 32768), (Segment.LOCAL, -1)],
)
def test_index_out_of_range(segment, index):
    with pytest.raises(MalformedOperandError):
        emit_push(TranslatorContext(), segment, index)


def test_segment_accepts_vm_spelling():
    a, b = TranslatorContext(), TranslatorContext()
    emit_push(a, "local", 2)
    emit_push(b, Segment.LOCAL, 2)
    assert a.program.lines == b.program.lines
