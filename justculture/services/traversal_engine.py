from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from justculture.core.errors import (
    GraphIntegrityError,
    InvalidTransitionError,
    NoHistoryError,
    SnapshotError,
    ValidationError,
)
from justculture.core.log import global_log
from justculture.models.decision_graph import DecisionGraph, OutcomeNode, QuestionNode
from justculture.models.session import CaseMetadata, SessionState, Snapshot, StepRecord

SUMMARY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

class Status(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"

def answer_label(is_yes: bool) -> str:
    return "YES" if is_yes else "NO"

def format_step(step: StepRecord) -> str:
    line = f"{step.question} → {answer_label(step.answer)}"
    if step.explanation:
        line += f" (Explanation: {step.explanation})"
    return line

class TraversalEngine:
    """Walks one assessment through a decision graph.

    The engine owns the session state exclusively. Every operation either
    applies completely or raises before touching the state:

    - ``start`` enters the graph at its entry point (NotStarted only).
    - ``answer`` records a step and follows the yes/no successor.
    - ``back`` drops the last step and returns to the question it answered.
    - ``reset`` returns to NotStarted.
    - ``build_summary`` renders the outcome and path once Complete.
    """

    def __init__(self, graph: DecisionGraph, require_explanation: Optional[bool] = None, keep_metadata_on_reset: bool = True):
        self.graph = graph
        self.require_explanation = graph.require_explanation if require_explanation is None else require_explanation
        self.keep_metadata_on_reset = keep_metadata_on_reset
        self._state = SessionState()

    # Observable state

    @property
    def state(self) -> SessionState:
        return self._state.model_copy(deep=True)

    @property
    def current_node(self) -> Optional[Union[QuestionNode, OutcomeNode]]:
        if self._state.current_node_id is None:
            return None
        node = self.graph.resolve(self._state.current_node_id)
        if node is None:
            raise GraphIntegrityError(
                f"Current node '{self._state.current_node_id}' is not defined in graph '{self.graph.name}'",
                node_id=self._state.current_node_id,
            )
        return node

    @property
    def status(self) -> Status:
        node = self.current_node
        if node is None:
            return Status.NOT_STARTED
        if isinstance(node, OutcomeNode):
            return Status.COMPLETE
        return Status.IN_PROGRESS

    @property
    def outcome(self) -> Optional[OutcomeNode]:
        node = self.current_node
        return node if isinstance(node, OutcomeNode) else None

    @property
    def steps(self) -> List[StepRecord]:
        return [s.model_copy() for s in self._state.steps]

    @property
    def step_count(self) -> int:
        return len(self._state.steps)

    @property
    def metadata(self) -> CaseMetadata:
        return self._state.metadata.model_copy()

    @property
    def remember_enabled(self) -> bool:
        return self._state.remember_enabled

    # Transitions

    def start(self) -> QuestionNode:
        status = self.status
        if status != Status.NOT_STARTED:
            raise InvalidTransitionError(f"Cannot start: assessment is {status.value}, reset it first")
        entry = self.graph.entry
        self._state.current_node_id = entry.id
        self._state.steps = []
        global_log(f"Assessment started on graph '{self.graph.name}' at {entry.id}", level="DEBUG", component="Engine")
        return entry

    def answer(self, is_yes: bool, explanation: str = "") -> Union[QuestionNode, OutcomeNode]:
        node = self.current_node
        if not isinstance(node, QuestionNode):
            raise InvalidTransitionError(f"Cannot answer: assessment is {self.status.value}")

        explanation = (explanation or "").strip()
        if self.require_explanation and not explanation:
            raise ValidationError("Please add a short explanation before answering.")

        target_id = node.successor(is_yes)
        target = self.graph.resolve(target_id)
        if target is None:
            raise GraphIntegrityError(
                f"Node '{node.id}' answered {answer_label(is_yes)} leads to unknown node '{target_id}'",
                node_id=node.id,
                target_id=target_id,
            )

        self._state.steps.append(
            StepRecord(node_id=node.id, question=node.prompt, answer=is_yes, explanation=explanation)
        )
        self._state.current_node_id = target.id
        global_log(f"{node.id} -> {answer_label(is_yes)} -> {target.id}", level="DEBUG", component="Engine")
        return target

    def back(self) -> QuestionNode:
        if not self._state.steps:
            raise NoHistoryError("No previous question to go back to.")
        last = self._state.steps.pop()
        self._state.current_node_id = last.node_id
        return self.current_node

    def reset(self, keep_metadata: Optional[bool] = None):
        keep = self.keep_metadata_on_reset if keep_metadata is None else keep_metadata
        self._state.current_node_id = None
        self._state.steps = []
        if not keep:
            self._state.metadata = CaseMetadata()

    def update_metadata(self, **fields: Optional[str]) -> CaseMetadata:
        unknown = set(fields) - set(CaseMetadata.model_fields)
        if unknown:
            raise ValueError(f"Unknown metadata fields: {', '.join(sorted(unknown))}")
        values = {k: (v or "").strip() for k, v in fields.items() if v is not None}
        self._state.metadata = self._state.metadata.model_copy(update=values)
        return self.metadata

    def set_remember(self, enabled: bool):
        self._state.remember_enabled = bool(enabled)

    # Summary

    def build_summary(self, now: Optional[datetime] = None) -> str:
        outcome = self.outcome
        if outcome is None:
            raise InvalidTransitionError("Finish the decision first.")

        blocks = []
        meta_lines = self._state.metadata.lines()
        if meta_lines:
            blocks.append("\n".join(meta_lines))
        blocks.append(outcome.summary)
        flow = [f"- {format_step(s)}" for s in self._state.steps] or ["- —"]
        blocks.append("Decision Flow:\n" + "\n".join(flow))
        blocks.append("Timestamp: " + (now or datetime.now()).strftime(SUMMARY_TIMESTAMP_FORMAT))
        return "\n\n".join(blocks)

    def view(self) -> Dict[str, Any]:
        """Everything a renderer needs after an operation."""
        status = self.status
        node = self.current_node
        outcome = self.outcome
        return {
            "graph": self.graph.name,
            "title": self.graph.title,
            "status": status.value,
            "require_explanation": self.require_explanation,
            "node_id": node.id if node else None,
            "question": node.prompt if isinstance(node, QuestionNode) else None,
            "outcome": outcome.model_dump() if outcome else None,
            "step_count": self.step_count,
            "steps": [
                {**s.model_dump(), "label": answer_label(s.answer)} for s in self._state.steps
            ],
            "metadata": self._state.metadata.model_dump(),
            "remember_enabled": self._state.remember_enabled,
            "can_start": status == Status.NOT_STARTED,
            "can_answer": status == Status.IN_PROGRESS,
            "can_back": self.step_count > 0,
            "summary": self.build_summary() if outcome else None,
        }

    # Persistence

    def snapshot(self) -> Snapshot:
        return Snapshot.from_state(self._state)

    def restore(self, snapshot: Snapshot):
        """Replace the session state with a saved snapshot.

        The recorded answers are replayed from the entry point, which both
        checks the snapshot against this graph and fills in node ids for
        snapshots saved without them.
        """
        metadata = CaseMetadata(**snapshot.metadata.model_dump())
        if snapshot.current_node_id is None:
            if snapshot.steps:
                raise SnapshotError("Snapshot has steps but no current node")
            self._state = SessionState(metadata=metadata, remember_enabled=snapshot.remember_enabled)
            return

        steps = []
        node_id = self.graph.entry_id
        for index, saved in enumerate(snapshot.steps, start=1):
            if saved.node_id is not None and saved.node_id != node_id:
                raise SnapshotError(f"Step {index} was recorded at '{saved.node_id}', expected '{node_id}'")
            node = self.graph.resolve(node_id)
            if not isinstance(node, QuestionNode):
                raise SnapshotError(f"Step {index} refers to '{node_id}', which is not a question in graph '{self.graph.name}'")
            explanation = saved.explanation.strip()
            if self.require_explanation and not explanation:
                raise SnapshotError(f"Step {index} has no explanation")
            steps.append(
                StepRecord(node_id=node_id, question=saved.question, answer=saved.answer, explanation=explanation)
            )
            node_id = node.successor(saved.answer)

        if node_id != snapshot.current_node_id or self.graph.resolve(node_id) is None:
            raise SnapshotError(
                f"Snapshot current node '{snapshot.current_node_id}' does not match its recorded path (ends at '{node_id}')"
            )

        self._state = SessionState(
            current_node_id=node_id,
            steps=steps,
            metadata=metadata,
            remember_enabled=snapshot.remember_enabled,
        )
        global_log(f"Restored assessment at {node_id} with {len(steps)} steps", level="DEBUG", component="Engine")
