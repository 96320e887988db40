# assembler.py

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

# ---------------------------------------------------------------------
# assembler.py translates assembly language to a list of instructions
# ---------------------------------------------------------------------

import common
import architecture as arch
import arithmetic as arith

# ----------------------------------------------------------------------
# Assembler errors
# ----------------------------------------------------------------------

# Assembly stops at the first error. Each error carries the 1-based
# source line where it was found, along with the details needed to
# explain it.

class AssemblerError(Exception):
    fields = []

    def __init__(self, **kwargs):
        for name in self.fields:
            setattr(self, name, kwargs[name])
        super().__init__(self.message())

    def message(self):
        return "assembler error"

    def details(self):
        return {name: getattr(self, name) for name in self.fields}

    def __eq__(self, other):
        return type(self) is type(other) and self.details() == other.details()

    def __hash__(self):
        return hash((type(self).__name__, tuple(self.details().items())))

class TooManyOperands(AssemblerError):
    fields = ["line_index", "operands_found"]

    def message(self):
        return (f"too many operands on line {self.line_index}: "
                f"found {self.operands_found} operands")

class UnknownOpcode(AssemblerError):
    fields = ["line_index", "opcode"]

    def message(self):
        return f"unknown opcode on line {self.line_index}: {self.opcode}"

class MalformedOperand(AssemblerError):
    fields = ["line_index", "operand"]

    def message(self):
        return f"malformed operand on line {self.line_index}: {self.operand}"

class RedundantOperand(AssemblerError):
    fields = ["line_index", "opcode", "operand"]

    def message(self):
        return (f"redundant operand on line {self.line_index}: "
                f"{self.opcode} does not need an operand, "
                f"but {self.operand} is given")

class IncorrectOperand(AssemblerError):
    fields = ["line_index", "opcode", "operand_given", "operand_type_expected"]

    def message(self):
        return (f"incorrect operand on line {self.line_index}: "
                f"{self.opcode} expects an operand of type "
                f"{self.operand_type_expected}, but {self.operand_given} is given")

class MissingOperand(AssemblerError):
    fields = ["line_index", "opcode"]

    def message(self):
        return (f"missing operand on line {self.line_index}: "
                f"{self.opcode} expects an operand")

# Raised by the loader, not by assemble(), but reported to the user
# the same way

class ProgramTooLong(AssemblerError):
    fields = ["program_size", "memory_available"]

    def message(self):
        return (f"program too long: program size is {self.program_size}, "
                f"but only {self.memory_available} unit of memory space "
                f"is available")

assembler_errors = {
    cls.__name__: cls for cls in [
        TooManyOperands, UnknownOpcode, MalformedOperand, RedundantOperand,
        IncorrectOperand, MissingOperand, ProgramTooLong,
    ]
}

# ----------------------------------------------------------------------
# Operands
# ----------------------------------------------------------------------

# The parser does not know the line number, so it signals failure
# with BadOperand and the assembler turns that into MalformedOperand.

class BadOperand(ValueError):
    pass

def parse_operand(xs, symbol_table):
    """Parse one operand token. The first rule that applies decides:
    register name, &hex, Bbinary or #decimal immediate, decimal
    address, then label. Literals must fit in 16 bits."""
    if xs in arch.operand_registers:
        return arch.mk_register(xs)
    elif xs.startswith("&"):
        return arch.mk_immediate(require_word(xs, xs[1:], 16))
    elif xs.startswith("B"):
        return arch.mk_immediate(require_word(xs, xs[1:], 2))
    elif xs.startswith("#"):
        return arch.mk_immediate(require_word(xs, xs[1:], 10))
    x = arith.parse_word(xs, 10)
    if x is not None:
        return arch.mk_address(x)
    if xs in symbol_table:
        return arch.mk_address(symbol_table[xs])
    raise BadOperand(xs)

def require_word(xs, digits, radix):
    x = arith.parse_word(digits, radix)
    if x is None:
        raise BadOperand(xs)
    return x

# ----------------------------------------------------------------------
# Opcodes
# ----------------------------------------------------------------------

class BadOpcode(ValueError):
    pass

def parse_opcode(xs):
    """Return the Opcode for a mnemonic. A token that is not a
    mnemonic but reads as an immediate is a data word."""
    if xs in arch.mnemonics:
        return arch.Opcode(xs)
    try:
        operand = parse_operand(xs, {})
    except BadOperand:
        raise BadOpcode(xs)
    if operand.is_immediate():
        return arch.mk_data(operand.value)
    raise BadOpcode(xs)

# ----------------------------------------------------------------------
# Assembly language statement
# ----------------------------------------------------------------------

def mk_asm_stmt(line_number, src_line):
    return {
        "lineNumber": line_number,
        "srcLine": src_line,
        "fieldLabel": "",
        "fieldOperation": "",
        "fieldOperand": "",
        "hasLabel": False,
        "tokens": [],
        "address": None,
    }

def split_lines(txt):
    return txt.split("\n")

def remove_cr(xs):
    return xs.replace("\r", "")

def strip_comment(line):
    i = line.find("//")
    return line if i == -1 else line[:i]

def parse_asm_line(s):
    tokens = strip_comment(s["srcLine"]).split()
    if tokens and tokens[0].endswith(":"):
        s["hasLabel"] = True
        s["fieldLabel"] = tokens[0].rstrip(":")
        tokens = tokens[1:]
    s["tokens"] = tokens
    if tokens:
        s["fieldOperation"] = tokens[0]
    if len(tokens) > 1:
        s["fieldOperand"] = tokens[1]

def has_code(s):
    return len(s["tokens"]) > 0

class AsmInfo:
    def __init__(self, src_text):
        self.src_text = src_text
        self.asm_src_lines = split_lines(remove_cr(src_text))
        self.asm_stmt = []
        self.symbol_table = {}
        self.location_counter = 0
        self.program = []

# ----------------------------------------------------------------------
# Assembler
# ----------------------------------------------------------------------

def assembler(src_text):
    """Run both passes and return the AsmInfo. Raises the first
    AssemblerError found."""
    ai = AsmInfo(src_text)
    asm_pass1(ai)
    asm_pass2(ai)
    common.mode.devlog(f"assembler: {len(ai.program)} slots, "
                       f"{len(ai.symbol_table)} labels")
    return ai

def assemble(src_text):
    return assembler(src_text).program

def build_symbol_table(src_text):
    ai = AsmInfo(src_text)
    asm_pass1(ai)
    return ai.symbol_table

# ----------------------------------------------------------------------
# Assembler Pass 1
# ----------------------------------------------------------------------

# Labels count slots from zero, whatever the load location turns out
# to be. A label alone on its line names the next slot that gets
# code. A label defined twice keeps the last definition.

def asm_pass1(ma):
    common.mode.devlog(f"Assembler Pass 1: {len(ma.asm_src_lines)} source lines")
    for i, line in enumerate(ma.asm_src_lines):
        s = mk_asm_stmt(i + 1, line)
        ma.asm_stmt.append(s)
        parse_asm_line(s)
        if s["hasLabel"]:
            if s["fieldLabel"] in ma.symbol_table:
                common.mode.devlog(f"Pass 1 line {s['lineNumber']} redefines "
                                   f"{s['fieldLabel']}")
            ma.symbol_table[s["fieldLabel"]] = ma.location_counter
            common.mode.devlog(f"Pass 1 label {s['fieldLabel']} = {ma.location_counter}")
        if has_code(s):
            s["address"] = ma.location_counter
            ma.location_counter += 1

# ----------------------------------------------------------------------
# Pass 2
# ----------------------------------------------------------------------

def asm_pass2(ma):
    common.mode.devlog("Assembler Pass 2")
    for s in ma.asm_stmt:
        if has_code(s):
            ma.program.append(assemble_stmt(ma, s))

def assemble_stmt(ma, s):
    line_index = s["lineNumber"]
    n_tokens = len(s["tokens"])
    if n_tokens > 2:
        raise TooManyOperands(line_index=line_index, operands_found=n_tokens - 1)
    try:
        opcode = parse_opcode(s["fieldOperation"])
    except BadOpcode:
        raise UnknownOpcode(line_index=line_index, opcode=s["fieldOperation"])
    if n_tokens == 1:
        result = (opcode, require_no_operand(s, opcode))
    else:
        try:
            operand = parse_operand(s["fieldOperand"], ma.symbol_table)
        except BadOperand:
            raise MalformedOperand(line_index=line_index, operand=s["fieldOperand"])
        result = (opcode, require_operand_kind(s, opcode, operand))
    common.mode.devlog(f"Pass 2 line {line_index} slot {s['address']}: "
                       f"{arch.show_instruction(*result)}")
    return result

def require_no_operand(s, opcode):
    if opcode.is_data():
        return arch.mk_immediate(opcode.value)
    if opcode.mnemonic in arch.no_operand_mnemonics:
        return arch.Empty
    raise MissingOperand(line_index=s["lineNumber"], opcode=opcode)

def require_operand_kind(s, opcode, operand):
    if not arch.takes_operand(opcode):
        raise RedundantOperand(line_index=s["lineNumber"], opcode=opcode,
                               operand=operand)
    kinds, expected = arch.operand_spec[opcode.mnemonic]
    if operand.kind not in kinds:
        raise IncorrectOperand(line_index=s["lineNumber"], opcode=opcode,
                               operand_given=operand,
                               operand_type_expected=expected)
    return operand

# ----------------------------------------------------------------------
# Listing
# ----------------------------------------------------------------------

def format_listing(program, load_location=0):
    lines = []
    for i, (opcode, operand) in enumerate(program):
        addr = arith.word_to_hex2(load_location + i)
        lines.append(f"{addr}  {str(opcode):<6}{operand}".rstrip())
    return "\n".join(lines)

def format_symbol_table(symbol_table):
    return "\n".join(f"{name:<16}{offset}" for name, offset in symbol_table.items())
