import pytest
from datetime import datetime
from justculture.core.errors import (
    GraphIntegrityError,
    InvalidTransitionError,
    NoHistoryError,
    ValidationError,
)
from justculture.core.trees import STANDARD_TREE, LEGACY_TREE
from justculture.models.decision_graph import DecisionGraph, QuestionNode, OutcomeNode
from justculture.services.traversal_engine import TraversalEngine, Status

NOW = datetime(2026, 1, 2, 3, 4, 5)

@pytest.fixture
def engine():
    return TraversalEngine(STANDARD_TREE)

def walk(engine, answers):
    for i, is_yes in enumerate(answers):
        engine.answer(is_yes, f"reason {i + 1}")

def test_initial_state(engine):
    assert engine.status == Status.NOT_STARTED
    assert engine.current_node is None
    assert engine.step_count == 0

def test_start_enters_at_entry_point(engine):
    node = engine.start()
    assert node.id == "Q1"
    assert engine.status == Status.IN_PROGRESS
    assert engine.state.current_node_id == "Q1"

def test_start_twice_requires_reset(engine):
    engine.start()
    engine.answer(True, "known")
    with pytest.raises(InvalidTransitionError):
        engine.start()
    assert engine.step_count == 1
    engine.reset()
    engine.start()
    assert engine.step_count == 0

def test_no_reaches_supervisor_in_one_step(engine):
    engine.start()
    engine.answer(False, "Never trained on this procedure")
    assert engine.status == Status.COMPLETE
    assert engine.outcome.outcome == "Supervisor subject to Just Culture Process"
    assert engine.step_count == 1

def test_yes_yes_reaches_expected_in_two_steps(engine):
    engine.start()
    engine.answer(True, "Trained last month")
    engine.answer(True, "Checklist signed")
    assert engine.status == Status.COMPLETE
    assert engine.outcome.outcome == "Expected Behaviour → Recognition"
    assert engine.step_count == 2

@pytest.mark.parametrize("explanation", ["", "   ", "\n\t"])
def test_blank_explanation_rejected(engine, explanation):
    engine.start()
    with pytest.raises(ValidationError):
        engine.answer(True, explanation)
    assert engine.step_count == 0
    assert engine.state.current_node_id == "Q1"

def test_explanation_is_trimmed(engine):
    engine.start()
    engine.answer(True, "  because  ")
    assert engine.steps[0].explanation == "because"

def test_explanation_optional_when_not_required():
    engine = TraversalEngine(LEGACY_TREE)
    engine.start()
    engine.answer(True, "")
    assert engine.outcome.id == "END_EXPECTED"
    assert engine.steps[0].explanation == ""

def test_require_explanation_overrides_tree():
    engine = TraversalEngine(LEGACY_TREE, require_explanation=True)
    engine.start()
    with pytest.raises(ValidationError):
        engine.answer(True, " ")

def test_answer_outside_in_progress(engine):
    with pytest.raises(InvalidTransitionError):
        engine.answer(True, "too early")
    engine.start()
    engine.answer(False, "unknown rule")
    with pytest.raises(InvalidTransitionError):
        engine.answer(True, "too late")
    assert engine.step_count == 1

def test_back_from_not_started(engine):
    with pytest.raises(NoHistoryError):
        engine.back()
    assert engine.status == Status.NOT_STARTED

def test_back_with_no_history_after_start(engine):
    engine.start()
    with pytest.raises(NoHistoryError):
        engine.back()
    assert engine.state.current_node_id == "Q1"

def test_back_from_complete_returns_to_last_question(engine):
    engine.start()
    walk(engine, [True, False, False, False, True])
    assert engine.outcome is None
    engine.answer(False, "procedure unworkable")
    assert engine.outcome.id == "END_SYSTEM_INDUCED"
    node = engine.back()
    assert node.id == "Q6"
    assert engine.status == Status.IN_PROGRESS
    assert engine.step_count == 5

@pytest.mark.parametrize("graph", [STANDARD_TREE, LEGACY_TREE], ids=lambda g: g.name)
def test_answer_then_back_restores_state(graph):
    for answers, _ in graph.paths():
        engine = TraversalEngine(graph)
        engine.update_metadata(case_ref="JC-9")
        engine.start()
        for i, is_yes in enumerate(answers):
            before = engine.state
            engine.answer(is_yes, f"step {i}")
            engine.back()
            assert engine.state == before
            engine.answer(is_yes, f"step {i}")
        assert engine.status == Status.COMPLETE

def test_every_path_reaches_its_outcome():
    for answers, outcome_id in STANDARD_TREE.paths():
        engine = TraversalEngine(STANDARD_TREE)
        engine.start()
        walk(engine, answers)
        assert engine.outcome.id == outcome_id
        assert engine.step_count == len(answers)

def test_step_records_capture_question_text(engine):
    engine.start()
    engine.answer(True, "known")
    step = engine.steps[0]
    assert step.node_id == "Q1"
    assert step.question == "Were the rules / procedures known and understood?"
    assert step.answer is True

def test_state_is_a_copy(engine):
    engine.start()
    engine.answer(True, "known")
    state = engine.state
    state.steps.clear()
    engine.steps.clear()
    assert engine.step_count == 1

def test_reset_keeps_metadata_by_default(engine):
    engine.update_metadata(case_ref=" JC-1 ", assessor="Pat")
    engine.start()
    engine.answer(False, "not known")
    engine.reset()
    assert engine.status == Status.NOT_STARTED
    assert engine.step_count == 0
    assert engine.metadata.case_ref == "JC-1"

def test_reset_can_clear_metadata():
    engine = TraversalEngine(STANDARD_TREE, keep_metadata_on_reset=False)
    engine.update_metadata(case_ref="JC-1")
    engine.reset()
    assert engine.metadata.case_ref == ""

def test_update_metadata_ignores_none_and_rejects_unknown(engine):
    engine.update_metadata(case_ref="JC-1", notes="first")
    engine.update_metadata(case_ref=None, notes="second")
    assert engine.metadata.case_ref == "JC-1"
    assert engine.metadata.notes == "second"
    with pytest.raises(ValueError):
        engine.update_metadata(colour="red")

def test_summary_requires_complete(engine):
    with pytest.raises(InvalidTransitionError):
        engine.build_summary()
    engine.start()
    with pytest.raises(InvalidTransitionError):
        engine.build_summary()

def test_summary_text(engine):
    engine.update_metadata(case_ref="JC-1", assessor="Pat")
    engine.start()
    engine.answer(True, "Trained last month")
    engine.answer(True, "Checklist signed")
    assert engine.build_summary(now=NOW) == (
        "Case Ref: JC-1\n"
        "Assessor: Pat\n"
        "\n"
        "Classification: Expected Behaviour\n"
        "Recommended response: Recognition\n"
        "\n"
        "Decision Flow:\n"
        "- Were the rules / procedures known and understood? → YES (Explanation: Trained last month)\n"
        "- Were the rules / procedures followed? → YES (Explanation: Checklist signed)\n"
        "\n"
        "Timestamp: 2026-01-02 03:04:05"
    )

def test_summary_metadata_order_and_blank_fields(engine):
    engine.update_metadata(notes="Night shift", involved_name="Sam", case_ref="JC-2")
    engine.start()
    engine.answer(False, "not briefed")
    lines = engine.build_summary(now=NOW).splitlines()
    assert lines[:3] == ["Case Ref: JC-2", "Subject: Sam", "Notes: Night shift"]
    assert not any(line.startswith("Assessor:") for line in lines)

def test_summary_without_metadata_starts_with_outcome(engine):
    engine.start()
    engine.answer(False, "not briefed")
    summary = engine.build_summary()
    assert summary.startswith("Classification: Supervisor subject to Just Culture Process")
    assert "- Were the rules / procedures known and understood? → NO (Explanation: not briefed)" in summary

def test_summary_stable_apart_from_timestamp(engine):
    engine.start()
    walk(engine, [True, False, False, True])
    first = engine.build_summary().splitlines()
    second = engine.build_summary().splitlines()
    assert first[:-1] == second[:-1]
    assert first[-1].startswith("Timestamp: ")

def test_summary_omits_empty_explanation():
    engine = TraversalEngine(LEGACY_TREE)
    engine.start()
    engine.answer(True)
    assert "- Were the rules / procedures followed? → YES\n" in engine.build_summary()

def test_view(engine):
    view = engine.view()
    assert view["status"] == "not_started"
    assert view["can_start"] is True
    assert view["can_back"] is False
    assert view["summary"] is None
    engine.start()
    engine.answer(False, "not known")
    view = engine.view()
    assert view["status"] == "complete"
    assert view["outcome"]["pill"] == "Supervisor"
    assert view["steps"][0]["label"] == "NO"
    assert view["summary"].startswith("Classification: ")

def test_dangling_successor_fails_without_mutation():
    graph = DecisionGraph.build("broken", "Q1", [
        QuestionNode(id="Q1", prompt="First?", yes="END", no="GHOST"),
        OutcomeNode(id="END", outcome="Done", pill="Done", summary="Classification: Done"),
    ])
    engine = TraversalEngine(graph)
    engine.start()
    with pytest.raises(GraphIntegrityError) as exc:
        engine.answer(False, "try the missing branch")
    assert exc.value.node_id == "Q1"
    assert exc.value.target_id == "GHOST"
    assert "GHOST" in str(exc.value)
    assert engine.step_count == 0
    assert engine.state.current_node_id == "Q1"
