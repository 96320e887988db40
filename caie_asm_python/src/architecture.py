# architecture.py

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

# --------------------------------------------------------------------
# architecture.py defines global constants and tables specifying
# opcodes, mnemonics, operand kinds, registers and memory cells
# --------------------------------------------------------------------

import common
import arithmetic as arith

# --------------------------------------------------------------------
# Registers
# --------------------------------------------------------------------

# Only IX and ACC can be named in an operand. PC, CIR, MDR and MAR
# belong to the processor and never appear in source code.

IX = "IX"
ACC = "ACC"
operand_registers = [IX, ACC]

# --------------------------------------------------------------------
# Opcodes
# --------------------------------------------------------------------

mnemonics = [
    "LDM", "LDD", "LDI", "LDX", "LDR",
    "MOV", "STO",
    "ADD", "SUB", "INC", "DEC",
    "JMP", "CMP", "CMI", "JPE", "JPN",
    "IN", "OUT", "END",
    "AND", "XOR", "OR", "LSL", "LSR",
]

# A raw literal on a line of its own occupies a slot like an
# instruction does. Its opcode is Data, carrying the value.

DATA = "Data"

class Opcode:
    def __init__(self, mnemonic, value=None):
        if mnemonic != DATA and mnemonic not in mnemonics:
            raise ValueError(f"{mnemonic} is not an opcode")
        self.mnemonic = mnemonic
        self.value = value if mnemonic == DATA else None

    def is_data(self):
        return self.mnemonic == DATA

    def __eq__(self, other):
        return isinstance(other, Opcode) and \
            (self.mnemonic, self.value) == (other.mnemonic, other.value)

    def __hash__(self):
        return hash((self.mnemonic, self.value))

    def __repr__(self):
        return f"Data({self.value})" if self.is_data() else self.mnemonic

    def __str__(self):
        return str(self.value) if self.is_data() else self.mnemonic

def mk_data(v):
    return Opcode(DATA, v)

# --------------------------------------------------------------------
# Operands
# --------------------------------------------------------------------

oRegister = "Register"
oAddress = "Address"
oImmediate = "Immediate"
oEmpty = "Empty"

operand_kinds = [oRegister, oAddress, oImmediate, oEmpty]

class Operand:
    """An operand after assembly. Labels have been resolved, so the
    value is a register name, an address, an immediate number or
    nothing at all."""

    def __init__(self, kind, value=None):
        if kind not in operand_kinds:
            raise ValueError(f"{kind} is not an operand kind")
        self.kind = kind
        self.value = None if kind == oEmpty else value

    def is_register(self):
        return self.kind == oRegister

    def is_address(self):
        return self.kind == oAddress

    def is_immediate(self):
        return self.kind == oImmediate

    def is_empty(self):
        return self.kind == oEmpty

    def relocate(self, k):
        return Operand(oAddress, arith.limit16(self.value + k)) if self.is_address() else self

    def __eq__(self, other):
        return isinstance(other, Operand) and \
            (self.kind, self.value) == (other.kind, other.value)

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self):
        return f"Operand({self.kind}, {self.value!r})"

    # Immediates are shown as Number, which is how the syllabus
    # describes them

    def __str__(self):
        if self.kind == oRegister:
            return f"Register({self.value})"
        elif self.kind == oAddress:
            return f"Address({self.value})"
        elif self.kind == oImmediate:
            return f"Number({self.value})"
        else:
            return ""

def mk_register(r):
    return Operand(oRegister, r)

def mk_address(a):
    return Operand(oAddress, a)

def mk_immediate(x):
    return Operand(oImmediate, x)

Empty = Operand(oEmpty)

def show_instruction(opcode, operand):
    return f"{opcode} {operand}"

# --------------------------------------------------------------------
# Operand requirements
# --------------------------------------------------------------------

# Each opcode that takes an operand lists the operand kinds it
# accepts, and the name of that requirement used in error messages.

kNumber = "Number"
kAddress = "Address"
kRegister = "Register"
kAddressNumber = "Address/Number"

operand_spec = {
    "LDM": ([oImmediate], kNumber),
    "LDD": ([oAddress], kAddress),
    "LDI": ([oAddress], kAddress),
    "LDX": ([oAddress], kAddress),
    "LDR": ([oImmediate], kNumber),
    "MOV": ([oRegister], kRegister),
    "STO": ([oAddress], kAddress),
    "ADD": ([oAddress, oImmediate], kAddressNumber),
    "SUB": ([oAddress, oImmediate], kAddressNumber),
    "INC": ([oRegister], kRegister),
    "DEC": ([oRegister], kRegister),
    "JMP": ([oAddress], kAddress),
    "CMP": ([oAddress, oImmediate], kAddressNumber),
    "CMI": ([oAddress], kAddress),
    "JPE": ([oAddress], kAddress),
    "JPN": ([oAddress], kAddress),
    "AND": ([oAddress, oImmediate], kAddressNumber),
    "XOR": ([oAddress, oImmediate], kAddressNumber),
    "OR": ([oAddress, oImmediate], kAddressNumber),
    "LSL": ([oImmediate], kNumber),
    "LSR": ([oImmediate], kNumber),
}

# Opcodes that stand alone

no_operand_mnemonics = ["IN", "OUT", "END"]

def takes_operand(opcode):
    return opcode.mnemonic in operand_spec

# --------------------------------------------------------------------
# Memory cells
# --------------------------------------------------------------------

# Every memory cell holds either an instruction or a 16-bit value.
# There is no empty cell; cleared memory is all Value(0).

cInstruction = "Instruction"
cValue = "Value"

class Cell:
    def __init__(self, kind, value=0, opcode=None, operand=None):
        self.kind = kind
        self.value = value if kind == cValue else None
        self.opcode = opcode if kind == cInstruction else None
        self.operand = operand if kind == cInstruction else None

    def is_instruction(self):
        return self.kind == cInstruction

    def is_value(self):
        return self.kind == cValue

    def instruction(self):
        return (self.opcode, self.operand)

    def __eq__(self, other):
        return isinstance(other, Cell) and \
            (self.kind, self.value, self.opcode, self.operand) == \
            (other.kind, other.value, other.opcode, other.operand)

    def __hash__(self):
        return hash((self.kind, self.value, self.opcode, self.operand))

    def __repr__(self):
        if self.is_value():
            return f"Value({self.value})"
        return f"Instruction({self.opcode!r}, {self.operand!r})"

    def __str__(self):
        if self.is_value():
            return str(self.value)
        return show_instruction(self.opcode, self.operand)

def value_cell(v):
    return Cell(cValue, value=v)

def instruction_cell(opcode, operand):
    return Cell(cInstruction, opcode=opcode, operand=operand)

def cleared_memory():
    return [value_cell(0) for _ in range(common.mem_size)]

def in_memory(a):
    return 0 <= a <= common.max_address
