# emulator.py

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
# emulator.py defines the machine language semantics
# -------------------------------------------------------------------------

import time

import common
import architecture as arch
import arithmetic as arith
import state as st

# -------------------------------------------------------------------------
# Machine faults
# -------------------------------------------------------------------------

# An instruction that touches a bad address, or loads an instruction
# into ACC, raises MachineFault. execute_instruction catches it,
# reports it against the address of the instruction, and stops.

class MachineFault(Exception):
    def __init__(self, info_class, requested_address):
        self.info_class = info_class
        self.requested_address = requested_address
        super().__init__(f"{info_class.__name__} at {requested_address}")

class InputNotExpected(Exception):
    pass

# -------------------------------------------------------------------------
# Accessing memory
# -------------------------------------------------------------------------

def require_in_memory(es, a):
    if not arch.in_memory(a):
        raise MachineFault(st.AddressNotInMemory, a)
    return a

def mem_read(es, a):
    es.mar = arith.limit16(a)
    require_in_memory(es, a)
    return es.cell(a)

def require_value(c, a):
    if c.is_instruction():
        raise MachineFault(st.InvalidLoad, a)
    return c.value

# The arithmetic, logic and compare instructions latch the cell they
# read into MDR, instruction or not. The load instructions latch only
# a value, and LDI never latches the cell its pointer leads to.

def mem_fetch_data(es, a):
    es.mdr = mem_read(es, a)
    return require_value(es.mdr, a)

def mem_fetch_indirect(es, a):
    return mem_fetch_data(es, mem_fetch_data(es, a))

def mem_load(es, a):
    x = require_value(mem_read(es, a), a)
    es.mdr = arch.value_cell(x)
    return x

def mem_load_indirect(es, a):
    p = mem_load(es, a)
    return require_value(mem_read(es, p), p)

def mem_store(es, a, x):
    es.mar = arith.limit16(a)
    es.mdr = arch.value_cell(x)
    require_in_memory(es, a)
    es.memory[a] = es.mdr
    common.mode.devlog(f"mem_store {arith.word_to_hex2(a)} := {arith.word_to_hex4(x)}")

# Most arithmetic and logic instructions take either a number or the
# address of a number

def operand_value(es, operand):
    if operand.is_immediate():
        return operand.value
    elif operand.is_address():
        return mem_fetch_data(es, operand.value)
    common.unreachable(f"{operand!r} as a data operand; the assembler checks operand kinds")

def require_kind(operand, kind):
    if operand.kind != kind:
        common.unreachable(f"{operand!r} where {kind} is required; "
                           f"the assembler checks operand kinds")
    return operand.value

# -------------------------------------------------------------------------
# Initialize machine state
# -------------------------------------------------------------------------

def mem_clear(es):
    es.memory = arch.cleared_memory()

def proc_reset(es):
    """Clear registers, flags, memory and console, and stop."""
    common.mode.devlog("reset the processor")
    es.reset_registers()
    mem_clear(es)
    es.output = ""
    es.input = ""
    es.events = []
    set_stopped(es)

# -------------------------------------------------------------------------
# Controlling instruction execution
# -------------------------------------------------------------------------

def set_stopped(es):
    es.execution_state = st.Stopped
    es.input = ""
    es.steps_executed = 0

def set_run_state(es, x):
    """Start (Executing) or stop (Stopped) the machine. Starting only
    has an effect while stopped. Stopping abandons any wait for
    input. Returns True if the state changed."""
    if x == st.Stopped:
        changed = es.execution_state != st.Stopped
        set_stopped(es)
        return changed
    elif x == st.Executing:
        if es.execution_state != st.Stopped:
            common.mode.devlog(f"set_run_state: already {es.execution_state}")
            return False
        es.execution_state = st.Executing
        return True
    raise ValueError(f"cannot set run state to {x}")

def supply_input(es, xs):
    """Give one character to a machine waiting on IN. ACC receives its
    code point and execution resumes (or, when stepping, stops)."""
    if not st.awaiting_input(es.execution_state):
        raise InputNotExpected(f"no input is expected in state {es.execution_state}")
    if not xs:
        raise ValueError("input must be one character")
    es.acc = arith.char_to_word(xs[0])
    es.input = ""
    common.mode.devlog(f"supply_input {xs[0]!r} acc={arith.word_to_hex4(es.acc)}")
    if es.execution_state == st.ExecutingAwaitingInput:
        es.execution_state = st.Executing
    else:
        set_stopped(es)

def halt(es, info):
    es.report(info)
    set_stopped(es)
    common.mode.devlog(f"halt: {info!r}")

# -------------------------------------------------------------------------
# Wrapper around instruction execution
# -------------------------------------------------------------------------

def step(es):
    """Execute one instruction whatever the execution state. Returns
    the events reported since they were last taken."""
    counting = es.execution_state == st.Executing
    if counting and es.steps_executed >= common.step_warning_limit:
        es.report(st.TooManySteps(steps=es.steps_executed))
    execute_instruction(es)
    if counting:
        es.steps_executed += 1
    if es.execution_state == st.Stopped:
        es.steps_executed = 0
    return es.take_events()

def execute_instruction(es):
    executed_instr_addr = es.pc
    es.mar = executed_instr_addr

    # The PC can run off the end of memory after the instruction in
    # the last cell. That is reported like any other bad address.
    if not arch.in_memory(executed_instr_addr):
        halt(es, st.AddressNotInMemory(ins_address=executed_instr_addr,
                                       requested_address=executed_instr_addr))
        return

    es.mdr = es.cell(executed_instr_addr)
    if es.mdr.is_value():
        if es.mdr.value == 0:
            halt(es, st.ExecutionTerminated(ins_address=executed_instr_addr))
        else:
            halt(es, st.ExecutionAbortedValueMet(ins_address=executed_instr_addr,
                                                 value=es.mdr.value))
        return

    es.cir = es.mdr.instruction()
    es.pc = executed_instr_addr + 1
    opcode, operand = es.cir
    common.mode.devlog(f"ExInstr {arith.word_to_hex2(executed_instr_addr)} "
                       f"{arch.show_instruction(opcode, operand)}")
    try:
        dispatch_opcode[opcode.mnemonic](es, operand, executed_instr_addr)
    except MachineFault as e:
        halt(es, e.info_class(ins_address=executed_instr_addr,
                              requested_address=e.requested_address))

# -------------------------------------------------------------------------
# Instruction pattern functions
# -------------------------------------------------------------------------

# ACC := f(ACC, number or memory), setting the flags f returns

def acc_alu(f):
    def inner(es, operand, here):
        b = operand_value(es, operand)
        primary, secondary = f(es.acc, b)
        es.acc = primary
        es.set_flags(secondary)
    return inner

# Flags from ACC - x, ACC unchanged

def compare(fetch):
    def inner(es, operand, here):
        b = fetch(es, operand)
        primary, secondary = arith.op_sub(es.acc, b)
        common.mode.devlog(f"compare acc={es.acc} b={b} diff={primary}")
        es.set_flags(secondary)
    return inner

def reg_update(f):
    def inner(es, operand, here):
        r = require_kind(operand, arch.oRegister)
        if r == arch.IX:
            es.ix, secondary = f(es.ix)
        else:
            es.acc, secondary = f(es.acc)
        es.set_flags(secondary)
    return inner

def jump_if(cond):
    def inner(es, operand, here):
        a = require_kind(operand, arch.oAddress)
        if cond(es):
            es.pc = require_in_memory(es, a)
            common.mode.devlog(f"jump to {arith.word_to_hex2(a)}")
    return inner

# -------------------------------------------------------------------------
# Instructions
# -------------------------------------------------------------------------

def op_ldm(es, operand, here):
    es.acc = require_kind(operand, arch.oImmediate)

def op_ldd(es, operand, here):
    es.acc = mem_load(es, require_kind(operand, arch.oAddress))

def op_ldi(es, operand, here):
    es.acc = mem_load_indirect(es, require_kind(operand, arch.oAddress))

def op_ldx(es, operand, here):
    ea = require_kind(operand, arch.oAddress) + es.ix
    es.acc = mem_load(es, ea)

def op_ldr(es, operand, here):
    es.ix = require_kind(operand, arch.oImmediate)

# MOV ACC would copy ACC to itself

def op_mov(es, operand, here):
    if require_kind(operand, arch.oRegister) == arch.IX:
        es.ix = es.acc

def op_sto(es, operand, here):
    mem_store(es, require_kind(operand, arch.oAddress), es.acc)

def op_in(es, operand, here):
    if es.execution_state == st.Executing:
        es.execution_state = st.ExecutingAwaitingInput
    else:
        es.execution_state = st.SteppingAwaitingInput
    common.mode.devlog(f"IN: {es.execution_state}")

def op_out(es, operand, here):
    es.output += arith.word_to_char(es.acc)

def op_end(es, operand, here):
    halt(es, st.ExecutionTerminated(ins_address=here))

def op_data(es, operand, here):
    common.unreachable("a data word was decoded; the loader stores data as values")

def cmi_fetch(es, operand):
    return mem_fetch_indirect(es, require_kind(operand, arch.oAddress))

dispatch_opcode = {
    "LDM": op_ldm,
    "LDD": op_ldd,
    "LDI": op_ldi,
    "LDX": op_ldx,
    "LDR": op_ldr,
    "MOV": op_mov,
    "STO": op_sto,
    "ADD": acc_alu(arith.op_add),
    "SUB": acc_alu(arith.op_sub),
    "INC": reg_update(arith.op_inc),
    "DEC": reg_update(arith.op_dec),
    "JMP": jump_if(lambda es: True),
    "CMP": compare(operand_value),
    "CMI": compare(cmi_fetch),
    "JPE": jump_if(lambda es: es.zero),
    "JPN": jump_if(lambda es: not es.zero),
    "IN": op_in,
    "OUT": op_out,
    "END": op_end,
    "AND": acc_alu(arith.op_and),
    "XOR": acc_alu(arith.op_xor),
    "OR": acc_alu(arith.op_or),
    "LSL": acc_alu(arith.op_lsl),
    "LSR": acc_alu(arith.op_lsr),
    arch.DATA: op_data,
}

# -------------------------------------------------------------------------
# Pacing
# -------------------------------------------------------------------------

class Runner:
    """Drives a running machine from a host loop. Each tick takes at
    most one step, and only when the clock speed allows it."""

    def __init__(self, es, clock=time.monotonic):
        self.es = es
        self.clock = clock
        self.last_step_time = clock()

    def step_due(self, now):
        hz = self.es.clock_speed
        if hz == 0:
            return True
        return (now - self.last_step_time) * 1000 >= 1000 / hz

    def tick(self):
        if self.es.execution_state != st.Executing:
            if self.es.execution_state == st.Stopped:
                self.es.steps_executed = 0
            return []
        now = self.clock()
        if not self.step_due(now):
            return []
        self.last_step_time = now
        return step(self.es)

    def run_to_completion(self, input_source=None, max_steps=None):
        """Run until the machine stops, ignoring the clock speed.
        Characters for IN come from input_source; if it runs dry the
        machine is left waiting for input. max_steps stops a runaway
        program."""
        es = self.es
        chars = iter(input_source if input_source is not None else "")
        events = []
        n = 0
        if es.execution_state == st.SteppingAwaitingInput:
            xs = next(chars, None)
            if xs is None:
                return events
            supply_input(es, xs)
        set_run_state(es, st.Executing)
        while es.execution_state != st.Stopped:
            if st.awaiting_input(es.execution_state):
                xs = next(chars, None)
                if xs is None:
                    common.mode.devlog("run_to_completion: input exhausted")
                    break
                supply_input(es, xs)
                continue
            if max_steps is not None and n >= max_steps:
                common.modal_warning(f"stopped after {max_steps} instructions")
                set_run_state(es, st.Stopped)
                break
            events.extend(step(es))
            n += 1
        return events

# -------------------------------------------------------------------------
# Dumps
# -------------------------------------------------------------------------

def show_flags(es):
    return " ".join(f"{name}={int(x)}" for name, x in es.flags().items())

def dump_registers(es):
    print("--- Registers ---")
    for name, x in es.registers().items():
        print(f"  {name:<4}{arith.show_word(x, es.value_as_hex)}")
    print(f"  CIR {arch.show_instruction(*es.cir)}")
    print(f"  MDR {es.mdr}")
    print(f"  {show_flags(es)}")

def dump_memory(es):
    print("--- Memory ---")
    header = "    " + " ".join(f"{c:>4X}" for c in range(common.mem_cols))
    print(header)
    for r in range(common.mem_rows):
        row = []
        for c in range(common.mem_cols):
            x = es.cell(r * common.mem_cols + c)
            if x.is_instruction():
                row.append(f"{str(x.opcode):>4}")
            else:
                row.append(f"{arith.show_word(x.value, es.value_as_hex):>4}")
        print(f"{r:02X}  " + " ".join(row))
