import json

import pytest

import main

def write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return str(p)

def test_assemble(tmp_path, capsys):
    path = write(tmp_path, "hello.asm", "LDM #72\nOUT\nEND\n")
    assert main.main(["assemble", path]) == 0
    out = capsys.readouterr().out
    assert "00  LDM   Number(72)" in out
    assert "02  END" in out
    assert "3 words" in out

def test_assemble_symbols(tmp_path, capsys):
    path = write(tmp_path, "loop.asm", "start: JMP start\n")
    assert main.main(["assemble", path, "--symbols"]) == 0
    assert "start" in capsys.readouterr().out

def test_assemble_error(tmp_path, capsys):
    path = write(tmp_path, "bad.asm", "FOO\n")
    assert main.main(["assemble", path]) == 1
    assert "unknown opcode on line 1: FOO" in capsys.readouterr().out

def test_missing_file(tmp_path, capsys):
    assert main.main(["run", str(tmp_path / "nope.asm")]) == 1

def test_run(tmp_path, capsys):
    path = write(tmp_path, "hello.asm", "LDM #72\nOUT\nEND\n")
    assert main.main(["run", path]) == 0
    out = capsys.readouterr().out
    assert "H\n" in out
    assert "Execution terminated at address 2₁₆ = 2₁₀" in out

def test_run_load_at(tmp_path, capsys):
    path = write(tmp_path, "hello.asm", "LDM #72\nOUT\nEND\n")
    assert main.main(["run", path, "--load-at", "10"]) == 0
    assert "C₁₆ = 12₁₀" in capsys.readouterr().out

def test_run_load_at_outside_memory(tmp_path):
    path = write(tmp_path, "hello.asm", "END\n")
    with pytest.raises(SystemExit):
        main.main(["run", path, "--load-at", "256"])

def test_run_too_long(tmp_path, capsys):
    path = write(tmp_path, "two.asm", "OUT\nEND\n")
    assert main.main(["run", path, "--load-at", "255"]) == 1
    assert "program size is 2, but only 1 unit" in capsys.readouterr().out

def test_run_with_input(tmp_path, capsys):
    path = write(tmp_path, "echo.asm", "IN\nOUT\nIN\nOUT\nEND\n")
    assert main.main(["run", path, "--input", "ok"]) == 0
    assert "ok\n" in capsys.readouterr().out

def test_run_aborted(tmp_path, capsys):
    path = write(tmp_path, "load.asm", "LDD 1\nEND\n")
    assert main.main(["run", path]) == 2
    assert "to the ACC, which is an instruction" in capsys.readouterr().out

def test_run_max_steps(tmp_path, capsys):
    path = write(tmp_path, "loop.asm", "loop: JMP loop\n")
    assert main.main(["run", path, "--max-steps", "50"]) == 0
    assert "stopped after 50 instructions" in capsys.readouterr().out

def test_run_dumps(tmp_path, capsys):
    path = write(tmp_path, "hello.asm", "LDM #72\nOUT\nEND\n")
    assert main.main(["run", path, "--reg-dump", "--mem-dump"]) == 0
    out = capsys.readouterr().out
    assert "--- Registers ---" in out
    assert "ACC 0048" in out
    assert "--- Memory ---" in out
    assert " LDM" in out

def test_save_and_resume(tmp_path, capsys):
    path = write(tmp_path, "echo.asm", "IN\nOUT\nEND\n")
    saved = str(tmp_path / "state.json")
    assert main.main(["run", path, "--save-state", saved]) == 0
    assert "waiting for input" in capsys.readouterr().out
    assert json.loads(open(saved, encoding="utf-8").read())["execution_state"] == \
        "ExecutingAwaitingInput"
    assert main.main(["resume", saved, "--input", "z"]) == 0
    out = capsys.readouterr().out
    assert "z\n" in out
    assert "Execution terminated" in out

def test_resume_bad_state(tmp_path, capsys):
    saved = write(tmp_path, "state.json", "{}")
    assert main.main(["resume", saved]) == 1
    assert "missing field" in capsys.readouterr().out

def test_no_command(capsys):
    assert main.main([]) == 0
    assert "usage" in capsys.readouterr().out
