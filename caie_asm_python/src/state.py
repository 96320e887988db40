# state.py

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
# state.py defines the interpreter state: the source program, memory,
# registers, flags, console and execution state of one emulation
# session, together with the events the emulator reports, and the
# conversion of all of it to and from JSON.
# -------------------------------------------------------------------------

import json

import common
import architecture as arch
import arithmetic as arith
import assembler as asm

# -------------------------------------------------------------------------
# Execution states
# -------------------------------------------------------------------------

Stopped = "Stopped"
Executing = "Executing"
ExecutingAwaitingInput = "ExecutingAwaitingInput"
SteppingAwaitingInput = "SteppingAwaitingInput"

execution_states = [Stopped, Executing, ExecutingAwaitingInput, SteppingAwaitingInput]

def awaiting_input(x):
    return x in (ExecutingAwaitingInput, SteppingAwaitingInput)

# -------------------------------------------------------------------------
# Execution info
# -------------------------------------------------------------------------

# Events reported by the emulator while it runs. They are returned to
# the host rather than raised. TooManySteps is only a warning; the
# others are reported as execution stops.

class ExecutionInfo:
    fields = []
    title = ""
    summary = ""
    stops = True
    abnormal = True

    def __init__(self, **kwargs):
        for name in self.fields:
            setattr(self, name, kwargs[name])

    def message(self):
        return self.summary

    def details(self):
        return {name: getattr(self, name) for name in self.fields}

    def __eq__(self, other):
        return type(self) is type(other) and self.details() == other.details()

    def __hash__(self):
        return hash((type(self).__name__, tuple(self.details().items())))

    def __repr__(self):
        args = ", ".join(f"{k}={v}" for k, v in self.details().items())
        return f"{type(self).__name__}({args})"

    def __str__(self):
        return self.message()

class ExecutionTerminated(ExecutionInfo):
    fields = ["ins_address"]
    title = "Execution terminated"
    summary = "Execution terminated."
    abnormal = False

    def message(self):
        return (f"Execution terminated at address {arith.show_address(self.ins_address)}, "
                f"because the END instruction (value 0) was encountered.")

class ExecutionAbortedValueMet(ExecutionInfo):
    fields = ["ins_address", "value"]
    title = "Aborted"
    summary = "Execution aborted."

    def message(self):
        return (f"Execution aborted at address {arith.show_address(self.ins_address)}, "
                f"because the value {self.value} was encountered, "
                f"which is not an instruction.")

class TooManySteps(ExecutionInfo):
    fields = ["steps"]
    title = "Warning"
    summary = "Many instructions executed."
    stops = False
    abnormal = False

    def message(self):
        return (f"{self.steps} instructions have been executed. You may have "
                f"mistakenly written a program that runs indefinitely.")

class AddressNotInMemory(ExecutionInfo):
    fields = ["ins_address", "requested_address"]
    title = "Aborted"
    summary = "Invalid address."

    def message(self):
        return (f"Execution aborted at address {arith.show_address(self.ins_address)}, "
                f"because the program attempted to access memory at address "
                f"{arith.show_address(self.requested_address)}, "
                f"which is not in the memory.")

class InvalidLoad(ExecutionInfo):
    fields = ["ins_address", "requested_address"]
    title = "Aborted"
    summary = "Invalid load."

    def message(self):
        return (f"Execution aborted at address {arith.show_address(self.ins_address)}, "
                f"because the program attempted to load memory at address "
                f"{arith.show_address(self.requested_address)} to the ACC, "
                f"which is an instruction.")

execution_infos = {
    cls.__name__: cls for cls in [
        ExecutionTerminated, ExecutionAbortedValueMet, TooManySteps,
        AddressNotInMemory, InvalidLoad,
    ]
}

# -------------------------------------------------------------------------
# Default program
# -------------------------------------------------------------------------

default_program = """loop:
    LDX string
    OUT
    INC IX
    LDD count
    DEC ACC
    STO count
    CMP #0
    JPN loop
    END

count:  #12

string:
        &48
        &65
        &6c
        &6c
        &6f
        &2c
        &20
        &77
        &6f
        &72
        &6c
        &64
"""

# -------------------------------------------------------------------------
# Interpreter state
# -------------------------------------------------------------------------

class InterpreterState:
    """Everything belonging to one emulation session. The emulator
    functions take the state as their first argument and are the only
    code that mutates registers, flags and memory while running."""

    def __init__(self, source_code=default_program):
        self.source_code = source_code
        self.program_load_location = 0
        self.memory = arch.cleared_memory()
        self.output = ""
        self.input = ""
        self.execution_state = Stopped
        self.steps_executed = 0
        self.clock_speed = common.default_clock_speed
        self.execution_info = None
        self.assembler_error = None
        self.value_as_hex = True
        self.highlight_pc_location = True
        self.pc_highlight_color = list(common.default_pc_highlight_color)
        # Events not yet collected by the host. Not part of the saved state.
        self.events = []
        self.reset_registers()

    def reset_registers(self):
        self.pc = 0
        self.cir = (arch.Opcode("END"), arch.Empty)
        self.ix = 0
        self.mdr = arch.value_cell(0)
        self.mar = 0
        self.acc = 0
        self.carry = False
        self.zero = False
        self.overflow = False
        self.sign = False

    def flags(self):
        return {
            "carry": self.carry,
            "zero": self.zero,
            "overflow": self.overflow,
            "sign": self.sign,
        }

    def set_flags(self, cc):
        for name, x in cc.items():
            setattr(self, name, x)

    def registers(self):
        return {
            "PC": self.pc,
            "IX": self.ix,
            "MAR": self.mar,
            "ACC": self.acc,
        }

    def report(self, info):
        self.execution_info = info
        self.events.append(info)

    def take_events(self):
        xs = self.events
        self.events = []
        return xs

    def cell(self, a):
        return self.memory[a]

    def to_json(self, indent=None):
        return json.dumps(state_to_dict(self), indent=indent)

    @classmethod
    def from_json(cls, text):
        try:
            x = json.loads(text)
        except json.JSONDecodeError as e:
            raise StateFormatError(f"state is not valid JSON: {e}")
        return state_from_dict(x)

    def __eq__(self, other):
        return isinstance(other, InterpreterState) and \
            state_to_dict(self) == state_to_dict(other)

    __hash__ = None

# -------------------------------------------------------------------------
# Serialization
# -------------------------------------------------------------------------

# Cells are tagged objects: {"Value": 5} or {"Instruction": [op, arg]}.
# Opcodes are mnemonics or {"Data": v}; operands are "Empty" or a
# single-key object such as {"Address": 12}.

class StateFormatError(ValueError):
    pass

def opcode_to_json(opcode):
    return {arch.DATA: opcode.value} if opcode.is_data() else opcode.mnemonic

def opcode_from_json(x):
    if isinstance(x, dict) and list(x) == [arch.DATA]:
        return arch.mk_data(require_word(x[arch.DATA]))
    if isinstance(x, str) and x in arch.mnemonics:
        return arch.Opcode(x)
    raise StateFormatError(f"bad opcode {x!r}")

def operand_to_json(operand):
    if operand.is_empty():
        return arch.oEmpty
    return {operand.kind: operand.value}

def operand_from_json(x):
    if x == arch.oEmpty:
        return arch.Empty
    if not (isinstance(x, dict) and len(x) == 1):
        raise StateFormatError(f"bad operand {x!r}")
    kind, value = next(iter(x.items()))
    if kind == arch.oRegister and value in arch.operand_registers:
        return arch.mk_register(value)
    elif kind == arch.oAddress:
        return arch.mk_address(require_word(value))
    elif kind == arch.oImmediate:
        return arch.mk_immediate(require_word(value))
    raise StateFormatError(f"bad operand {x!r}")

def cell_to_json(c):
    if c.is_value():
        return {arch.cValue: c.value}
    return {arch.cInstruction: [opcode_to_json(c.opcode), operand_to_json(c.operand)]}

def cell_from_json(x):
    if isinstance(x, dict) and list(x) == [arch.cValue]:
        return arch.value_cell(require_word(x[arch.cValue]))
    if isinstance(x, dict) and list(x) == [arch.cInstruction]:
        y = x[arch.cInstruction]
        if isinstance(y, list) and len(y) == 2:
            return arch.instruction_cell(opcode_from_json(y[0]), operand_from_json(y[1]))
    raise StateFormatError(f"bad memory cell {x!r}")

def require_word(x):
    if not arith.is_word(x):
        raise StateFormatError(f"{x!r} is not a 16-bit word")
    return x

# Fields of AssemblerError and ExecutionInfo are plain numbers and
# strings, except the opcode and operand fields of assembler errors.

def detail_to_json(x):
    if isinstance(x, arch.Opcode):
        return {"opcode": opcode_to_json(x)}
    if isinstance(x, arch.Operand):
        return {"operand": operand_to_json(x)}
    return x

def detail_from_json(x):
    if isinstance(x, dict) and list(x) == ["opcode"]:
        return opcode_from_json(x["opcode"])
    if isinstance(x, dict) and list(x) == ["operand"]:
        return operand_from_json(x["operand"])
    return x

def event_to_json(e):
    if e is None:
        return None
    return {type(e).__name__: {k: detail_to_json(v) for k, v in e.details().items()}}

def event_from_json(x, classes):
    if x is None:
        return None
    if not (isinstance(x, dict) and len(x) == 1):
        raise StateFormatError(f"bad event {x!r}")
    name, details = next(iter(x.items()))
    cls = classes.get(name)
    if cls is None or not isinstance(details, dict) or set(details) != set(cls.fields):
        raise StateFormatError(f"bad event {x!r}")
    return cls(**{k: detail_from_json(v) for k, v in details.items()})

def state_to_dict(es):
    return {
        "source_code": es.source_code,
        "memory": [cell_to_json(c) for c in es.memory],
        "program_load_location": es.program_load_location,
        "pc": es.pc,
        "cir": [opcode_to_json(es.cir[0]), operand_to_json(es.cir[1])],
        "ix": es.ix,
        "mdr": cell_to_json(es.mdr),
        "mar": es.mar,
        "acc": es.acc,
        "carry": es.carry,
        "zero": es.zero,
        "overflow": es.overflow,
        "sign": es.sign,
        "output": es.output,
        "input": es.input,
        "execution_state": es.execution_state,
        "steps_executed": es.steps_executed,
        "clock_speed": es.clock_speed,
        "execution_info": event_to_json(es.execution_info),
        "assembler_error": event_to_json(es.assembler_error),
        "value_as_hex": es.value_as_hex,
        "highlight_pc_location": es.highlight_pc_location,
        "pc_highlight_color": list(es.pc_highlight_color),
    }

def state_from_dict(x):
    if not isinstance(x, dict):
        raise StateFormatError("state must be a JSON object")
    try:
        es = InterpreterState(require_type(x["source_code"], str))
        memory = require_type(x["memory"], list)
        if len(memory) != common.mem_size:
            raise StateFormatError(f"memory has {len(memory)} cells, "
                                   f"expected {common.mem_size}")
        es.memory = [cell_from_json(c) for c in memory]
        es.program_load_location = require_word(x["program_load_location"])
        es.pc = require_word(x["pc"])
        cir = require_type(x["cir"], list)
        if len(cir) != 2:
            raise StateFormatError(f"bad cir {cir!r}")
        es.cir = (opcode_from_json(cir[0]), operand_from_json(cir[1]))
        es.ix = require_word(x["ix"])
        es.mdr = cell_from_json(x["mdr"])
        es.mar = require_word(x["mar"])
        es.acc = require_word(x["acc"])
        for name in ["carry", "zero", "overflow", "sign",
                     "value_as_hex", "highlight_pc_location"]:
            setattr(es, name, require_type(x[name], bool))
        es.output = require_type(x["output"], str)
        es.input = require_type(x["input"], str)
        if x["execution_state"] not in execution_states:
            raise StateFormatError(f"bad execution state {x['execution_state']!r}")
        es.execution_state = x["execution_state"]
        es.steps_executed = require_count(x["steps_executed"])
        es.clock_speed = require_word(x["clock_speed"])
        es.execution_info = event_from_json(x["execution_info"], execution_infos)
        es.assembler_error = event_from_json(x["assembler_error"], asm.assembler_errors)
        es.pc_highlight_color = require_color(x["pc_highlight_color"])
    except KeyError as e:
        raise StateFormatError(f"state is missing field {e}")
    return es

def require_type(x, t):
    if not isinstance(x, t) or (t is int and isinstance(x, bool)):
        raise StateFormatError(f"{x!r} is not a {t.__name__}")
    return x

def require_count(x):
    if require_type(x, int) < 0:
        raise StateFormatError(f"{x!r} is negative")
    return x

# An RGB triple, as QColor takes it

def require_color(x):
    require_type(x, list)
    if len(x) != 3 or not all(arith.is_word(c) and c <= 255 for c in x):
        raise StateFormatError(f"{x!r} is not an RGB colour")
    return list(x)
