from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class StepRecord(BaseModel):
    node_id: str
    question: str
    answer: bool
    explanation: str = ""

class CaseMetadata(BaseModel):
    case_ref: str = ""
    assessor: str = ""
    involved_name: str = ""
    notes: str = ""

    def lines(self) -> List[str]:
        labels = [
            ("Case Ref", self.case_ref),
            ("Assessor", self.assessor),
            ("Subject", self.involved_name),
            ("Notes", self.notes),
        ]
        return [f"{label}: {value}" for label, value in labels if value]

class SessionState(BaseModel):
    current_node_id: Optional[str] = None
    steps: List[StepRecord] = []
    metadata: CaseMetadata = Field(default_factory=CaseMetadata)
    remember_enabled: bool = False

# Persistence shape. Field names are camelCase on the wire so snapshots stay
# compatible with the browser-side "Remember" payload.

class SnapshotMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_ref: str = Field("", alias="caseRef")
    assessor: str = ""
    notes: str = ""
    involved_name: str = Field("", alias="involvedName")

class SnapshotStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    answer: bool
    explanation: str = ""
    node_id: Optional[str] = Field(None, alias="nodeId")

class Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    remember_enabled: bool = Field(False, alias="rememberEnabled")
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)
    current_node_id: Optional[str] = Field(None, alias="currentNodeId")
    steps: List[SnapshotStep] = []

    @classmethod
    def from_state(cls, state: SessionState) -> "Snapshot":
        return cls(
            remember_enabled=state.remember_enabled,
            metadata=SnapshotMetadata(**state.metadata.model_dump()),
            current_node_id=state.current_node_id,
            steps=[
                SnapshotStep(question=s.question, answer=s.answer, explanation=s.explanation, node_id=s.node_id)
                for s in state.steps
            ],
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
