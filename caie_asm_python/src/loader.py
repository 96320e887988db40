# loader.py

# Copyright (C) 2025 The CaieAsm authors. License: GNU GPL Version 3
# See CaieAsm/README and LICENSE

# This file is part of CaieAsm. CaieAsm is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# CaieAsm is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with CaieAsm. If
# not, see <https://www.gnu.org/licenses/>.

# -------------------------------------------------------------------------
# loader.py places an assembled program into memory. Services are
# address relocation and loading at a chosen location. There is only
# ever one program, so there is nothing to link.
# -------------------------------------------------------------------------

import common
import architecture as arch
import arithmetic as arith
import assembler as asm

# ------------------------------------------------------------------------
# Relocation
# ------------------------------------------------------------------------

# The assembler counts addresses from zero. Loading at k moves every
# Address operand up by k; numbers and registers stay as they are.
# A data word becomes a plain value in memory.

def relocate(opcode, operand, k):
    if opcode.is_data():
        return arch.value_cell(opcode.value)
    return arch.instruction_cell(opcode, operand.relocate(k))

def memory_available(load_location):
    return common.mem_size - load_location

# -------------------------------------------------------------------------
# Loader main interface
# -------------------------------------------------------------------------

def load_program(memory, program, load_location):
    """Write program into memory starting at load_location. Cells
    outside the program are left alone. Raises ProgramTooLong if the
    program does not fit between load_location and the end of memory."""
    if not arch.in_memory(load_location):
        raise ValueError(f"load location {load_location} is not in memory")
    available = memory_available(load_location)
    if len(program) > available:
        raise asm.ProgramTooLong(program_size=len(program), memory_available=available)
    common.mode.devlog(f"Loading {len(program)} words at "
                       f"{arith.word_to_hex2(load_location)}")
    for i, (opcode, operand) in enumerate(program):
        a = load_location + i
        memory[a] = relocate(opcode, operand, load_location)
        common.mode.devlog(f"  {arith.word_to_hex2(a)} {memory[a]}")
    return memory

def assemble_and_load(es):
    """Assemble the session's source and load it at the session's load
    location. An assembler error is recorded on the state for display
    and then raised again."""
    es.assembler_error = None
    try:
        program = asm.assemble(es.source_code)
        load_program(es.memory, program, es.program_load_location)
    except asm.AssemblerError as e:
        es.assembler_error = e
        common.mode.devlog(f"assemble_and_load: {e}")
        raise
    return program
