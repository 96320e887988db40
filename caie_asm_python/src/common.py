# common.py

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

# ----------------------------------------------------------------------
# common.py
# ----------------------------------------------------------------------

APP_TITLE = "CAIE Assembly Emulator"

# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------

# Memory is 256 cells, presented as 16 rows of 16.

mem_size = 256
mem_rows = 16
mem_cols = 16
max_address = mem_size - 1

# Number of steps taken in one run before the emulator warns that the
# program may be looping forever. The warning does not stop execution.

step_warning_limit = 1000

# Clock speed in Hz. Zero means step on every host tick.

default_clock_speed = 4
clock_speeds = [1, 2, 4, 8, 16, 32, 0]

def show_clock_speed(hz):
    return "Unlimited" if hz == 0 else f"{hz} Hz"

# Character written by OUT when ACC is not a Unicode scalar value

replacement_char = "�"

default_pc_highlight_color = [236, 111, 39]

# ----------------------------------------------------------------------
# Tracing
# ----------------------------------------------------------------------

def stacktrace():
    import traceback
    traceback.print_stack()

class Mode:
    def __init__(self):
        self.trace = False
        self.show_err = True

    def set_trace(self):
        self.trace = True

    def clear_trace(self):
        self.trace = False

    def devlog(self, xs):
        if self.trace:
            print(xs)

    def errlog(self, xs):
        if self.show_err:
            print(xs)

mode = Mode()

# ----------------------------------------------------------------------
# Logging error message
# ----------------------------------------------------------------------

def indicate_error(xs):
    print(f"\033[91m\033[1m{xs}\033[0m") # ANSI escape codes for red and bold
    if mode.trace:
        stacktrace()

# Cases that the assembler has already ruled out end up here.

def unreachable(xs):
    raise AssertionError(f"unreachable: {xs}")

# ----------------------------------------------------------------------
# Dialogues with the user
# ----------------------------------------------------------------------

def modal_warning(msg):
    print(f"WARNING: {msg}")
