# main.py

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

import sys
import argparse
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).resolve().parent))

import common
import assembler
import loader
import state
import emulator as em

default_max_steps = 100000

# Exit status
ok_status = 0
error_status = 1
aborted_status = 2

def read_source(file_path):
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read()

def assemble_file(file_path, show_symbols=False):
    try:
        src_text = read_source(file_path)
    except OSError as e:
        common.indicate_error(f"Error: cannot read {file_path}: {e}")
        return error_status
    try:
        asm_info = assembler.assembler(src_text)
    except assembler.AssemblerError as e:
        common.indicate_error(f"Assembler error: {e}")
        return error_status
    print(assembler.format_listing(asm_info.program))
    if show_symbols:
        print("--- Symbol table ---")
        print(assembler.format_symbol_table(asm_info.symbol_table))
    print(f"Assembly successful: {len(asm_info.program)} words.")
    return ok_status

def run_file(file_path, load_at=0, input_text="", max_steps=default_max_steps,
             dump_regs=False, dump_mem=False, save_state=None):
    try:
        es = state.InterpreterState(read_source(file_path))
    except OSError as e:
        common.indicate_error(f"Error: cannot read {file_path}: {e}")
        return error_status
    es.program_load_location = load_at
    try:
        loader.assemble_and_load(es)
    except assembler.AssemblerError as e:
        common.indicate_error(f"Assembler error: {e}")
        return error_status
    es.pc = load_at
    return run_session(es, input_text, max_steps, dump_regs, dump_mem, save_state)

def resume_file(state_path, input_text="", max_steps=default_max_steps,
                dump_regs=False, dump_mem=False, save_state=None):
    try:
        with open(state_path, 'r', encoding='utf-8') as f:
            es = state.InterpreterState.from_json(f.read())
    except (OSError, state.StateFormatError) as e:
        common.indicate_error(f"Error: cannot restore {state_path}: {e}")
        return error_status
    return run_session(es, input_text, max_steps, dump_regs, dump_mem, save_state)

def run_session(es, input_text, max_steps, dump_regs, dump_mem, save_state):
    print("--- Running Emulator ---")
    runner = em.Runner(es)
    events = runner.run_to_completion(input_text, max_steps)
    warnings = [e for e in events if not e.stops]
    if warnings:
        common.modal_warning(warnings[0].message())
    print(es.output)
    print("------------------------")
    if state.awaiting_input(es.execution_state):
        common.modal_warning("the program is waiting for input")
    elif es.execution_info is not None and es.execution_info.stops:
        print(es.execution_info.message())

    if dump_regs:
        em.dump_registers(es)
    if dump_mem:
        em.dump_memory(es)
    if save_state:
        try:
            with open(save_state, 'w', encoding='utf-8') as f:
                f.write(es.to_json(indent=2))
        except OSError as e:
            common.indicate_error(f"Error: cannot save state to {save_state}: {e}")
            return error_status
        print(f"State saved to {save_state}")

    if es.execution_info is not None and es.execution_info.abnormal:
        return aborted_status
    return ok_status

def load_address(xs):
    x = int(xs)
    if not 0 <= x <= common.max_address:
        raise argparse.ArgumentTypeError(f"{xs} is not an address in memory")
    return x

def add_run_options(p):
    p.add_argument("--input", default="", help="Characters supplied to IN, in order")
    p.add_argument("--max-steps", type=int, default=default_max_steps,
                   help="Stop after this many instructions")
    p.add_argument("--mem-dump", action="store_true", help="Dump memory after execution")
    p.add_argument("--reg-dump", action="store_true", help="Dump registers after execution")
    p.add_argument("--save-state", metavar="PATH", help="Write the final state as JSON")
    p.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")

def make_parser():
    parser = argparse.ArgumentParser(prog="caie-asm", description=f"{common.APP_TITLE} CLI Tool")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    assemble_parser = subparsers.add_parser("assemble", help="Assemble a file and print the listing")
    assemble_parser.add_argument("file", help="Path to the assembly file")
    assemble_parser.add_argument("--symbols", action="store_true", help="Print the symbol table")

    run_parser = subparsers.add_parser("run", help="Assemble, load and run a file")
    run_parser.add_argument("file", help="Path to the assembly file")
    run_parser.add_argument("--load-at", type=load_address, default=0,
                            help="Memory address where the program is loaded and started")
    add_run_options(run_parser)

    resume_parser = subparsers.add_parser("resume", help="Continue running a saved state")
    resume_parser.add_argument("state_file", help="Path to a state exported as JSON")
    add_run_options(resume_parser)

    gui_parser = subparsers.add_parser("gui", help="Open the graphical front end")
    gui_parser.add_argument("file", nargs="?", help="Assembly file to open")
    return parser

def main(argv=None):
    parser = make_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        common.mode.set_trace()
    try:
        if args.command == "assemble":
            return assemble_file(args.file, args.symbols)
        elif args.command == "run":
            return run_file(args.file, args.load_at, args.input, args.max_steps,
                            args.reg_dump, args.mem_dump, args.save_state)
        elif args.command == "resume":
            return resume_file(args.state_file, args.input, args.max_steps,
                               args.reg_dump, args.mem_dump, args.save_state)
        elif args.command == "gui":
            import gui
            return gui.start_gui(args.file)
        parser.print_help()
        return ok_status
    finally:
        common.mode.clear_trace()

if __name__ == "__main__":
    sys.exit(main())
