import json

import pytest

import architecture as arch
import assembler as asm
import emulator as em
import loader
import state as st

def loaded_state():
    es = st.InterpreterState()
    loader.assemble_and_load(es)
    return es

def test_round_trip_fresh_state():
    es = st.InterpreterState()
    assert st.InterpreterState.from_json(es.to_json()) == es

def test_round_trip_mid_run():
    es = loaded_state()
    em.set_run_state(es, st.Executing)
    for _ in range(20):
        em.step(es)
    es.clock_speed = 0
    es.value_as_hex = False
    es.pc_highlight_color = [1, 2, 3]
    restored = st.InterpreterState.from_json(es.to_json(indent=2))
    assert restored == es
    assert restored.output == es.output == "Hel"
    assert restored.steps_executed == 20
    assert restored.execution_state == st.Executing
    assert restored.cir == es.cir

def test_round_trip_events():
    es = loaded_state()
    es.execution_info = st.AddressNotInMemory(ins_address=3, requested_address=300)
    es.assembler_error = asm.IncorrectOperand(
        line_index=2, opcode=arch.Opcode("LDM"), operand_given=arch.mk_address(5),
        operand_type_expected="Number")
    restored = st.InterpreterState.from_json(es.to_json())
    assert restored.execution_info == es.execution_info
    assert restored.assembler_error == es.assembler_error

def test_round_trip_awaiting_input():
    es = st.InterpreterState("IN\nOUT\nEND")
    loader.assemble_and_load(es)
    em.set_run_state(es, st.Executing)
    em.step(es)
    restored = st.InterpreterState.from_json(es.to_json())
    em.supply_input(restored, "k")
    em.step(restored)
    assert restored.output == "k"

def test_json_schema():
    x = json.loads(loaded_state().to_json())
    assert len(x["memory"]) == 256
    assert x["memory"][0] == {"Instruction": ["LDX", {"Address": 10}]}
    assert x["memory"][1] == {"Instruction": ["OUT", "Empty"]}
    assert x["memory"][9] == {"Value": 12}
    assert x["memory"][255] == {"Value": 0}
    assert x["cir"] == ["END", "Empty"]
    assert x["execution_state"] == "Stopped"
    assert x["execution_info"] is None

def test_tagged_values():
    assert st.opcode_to_json(arch.mk_data(5)) == {"Data": 5}
    assert st.opcode_from_json({"Data": 5}) == arch.mk_data(5)
    assert st.operand_to_json(arch.mk_register("IX")) == {"Register": "IX"}
    assert st.operand_to_json(arch.mk_immediate(7)) == {"Immediate": 7}
    assert st.operand_from_json({"Immediate": 7}) == arch.mk_immediate(7)
    assert st.cell_from_json({"Instruction": [{"Data": 1}, "Empty"]}) == \
        arch.instruction_cell(arch.mk_data(1), arch.Empty)

def test_malformed_json():
    with pytest.raises(st.StateFormatError):
        st.InterpreterState.from_json("{not json")

def test_not_an_object():
    with pytest.raises(st.StateFormatError):
        st.InterpreterState.from_json("[]")

def mutated(f):
    x = json.loads(st.InterpreterState().to_json())
    f(x)
    return json.dumps(x)

@pytest.mark.parametrize("f", [
    lambda x: x.pop("acc"),
    lambda x: x["memory"].pop(),
    lambda x: x.update(acc=65536),
    lambda x: x.update(acc=True),
    lambda x: x.update(carry=1),
    lambda x: x.update(execution_state="Running"),
    lambda x: x["memory"].__setitem__(0, {"Value": -1}),
    lambda x: x["memory"].__setitem__(0, {"Instruction": ["FOO", "Empty"]}),
    lambda x: x["memory"].__setitem__(0, {"Instruction": ["LDM", {"Immediate": "x"}]}),
    lambda x: x["memory"].__setitem__(0, {"Instruction": ["MOV", {"Register": "PC"}]}),
    lambda x: x.update(cir=["END"]),
    lambda x: x.update(execution_info={"Exploded": {}}),
    lambda x: x.update(execution_info={"TooManySteps": {}}),
    lambda x: x.update(steps_executed=-1),
    lambda x: x.update(pc_highlight_color=[1]),
    lambda x: x.update(pc_highlight_color="x"),
    lambda x: x.update(pc_highlight_color=[0, 0, 256]),
    lambda x: x.update(pc_highlight_color=[0, True, 0]),
])
def test_schema_violations(f):
    with pytest.raises(st.StateFormatError):
        st.InterpreterState.from_json(mutated(f))

def test_take_events():
    es = st.InterpreterState()
    es.report(st.TooManySteps(steps=1000))
    es.report(st.ExecutionTerminated(ins_address=0))
    assert es.take_events() == [st.TooManySteps(steps=1000),
                                st.ExecutionTerminated(ins_address=0)]
    assert es.take_events() == []
    assert es.execution_info == st.ExecutionTerminated(ins_address=0)

def test_execution_info_messages():
    info = st.InvalidLoad(ins_address=2, requested_address=18)
    assert info.summary == "Invalid load."
    assert str(info) == ("Execution aborted at address 2₁₆ = 2₁₀, because the program "
                         "attempted to load memory at address 12₁₆ = 18₁₀ to the ACC, "
                         "which is an instruction.")
    assert st.ExecutionTerminated(ins_address=0).abnormal is False
    assert st.TooManySteps(steps=1000).stops is False
