import pytest

import architecture as arch
import assembler as asm
import loader
import state

def program():
    return asm.assemble("LDD x\nMOV IX\nADD #3\nEND\nx: #5")

def test_load_at_zero():
    memory = loader.load_program(arch.cleared_memory(), program(), 0)
    assert memory[0] == arch.instruction_cell(arch.Opcode("LDD"), arch.mk_address(4))
    assert memory[4] == arch.value_cell(5)
    assert memory[5] == arch.value_cell(0)

def test_relocation_moves_addresses_only():
    memory = loader.load_program(arch.cleared_memory(), program(), 10)
    assert memory[10] == arch.instruction_cell(arch.Opcode("LDD"), arch.mk_address(14))
    assert memory[11] == arch.instruction_cell(arch.Opcode("MOV"), arch.mk_register("IX"))
    assert memory[12] == arch.instruction_cell(arch.Opcode("ADD"), arch.mk_immediate(3))
    assert memory[13] == arch.instruction_cell(arch.Opcode("END"), arch.Empty)
    assert memory[14] == arch.value_cell(5)

def test_cells_outside_program_untouched():
    memory = arch.cleared_memory()
    memory[0] = arch.value_cell(7)
    memory[200] = arch.value_cell(9)
    loader.load_program(memory, program(), 5)
    assert memory[0] == arch.value_cell(7)
    assert memory[200] == arch.value_cell(9)

def test_program_fits_last_cell():
    memory = loader.load_program(arch.cleared_memory(), asm.assemble("END"), 255)
    assert memory[255] == arch.instruction_cell(arch.Opcode("END"), arch.Empty)

def test_program_too_long():
    with pytest.raises(asm.ProgramTooLong) as e:
        loader.load_program(arch.cleared_memory(), asm.assemble("OUT\nEND"), 255)
    assert e.value == asm.ProgramTooLong(program_size=2, memory_available=1)

def test_program_too_long_leaves_memory_alone():
    memory = arch.cleared_memory()
    with pytest.raises(asm.ProgramTooLong):
        loader.load_program(memory, asm.assemble("OUT\nOUT\nEND"), 254)
    assert memory == arch.cleared_memory()

def test_load_location_must_be_in_memory():
    with pytest.raises(ValueError):
        loader.load_program(arch.cleared_memory(), program(), 256)

def test_relocated_address_wraps_to_a_word():
    memory = loader.load_program(arch.cleared_memory(), asm.assemble("JMP 65535"), 2)
    assert memory[2].operand == arch.mk_address(1)

def test_assemble_and_load():
    es = state.InterpreterState("LDM #1\nEND")
    es.program_load_location = 3
    assert len(loader.assemble_and_load(es)) == 2
    assert es.memory[3].opcode == arch.Opcode("LDM")
    assert es.assembler_error is None

def test_assemble_and_load_records_error():
    es = state.InterpreterState("END\nFOO")
    with pytest.raises(asm.UnknownOpcode):
        loader.assemble_and_load(es)
    assert es.assembler_error == asm.UnknownOpcode(line_index=2, opcode="FOO")
    assert es.memory == arch.cleared_memory()
