from typing import Annotated, Dict, List, Literal, Optional, Set, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field
from justculture.core.errors import GraphIntegrityError

MATRIX_KEYS = ("expected", "supervisor", "dismissal", "warning", "coaching", "other")

class QuestionNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["question"] = "question"
    id: str
    prompt: str
    yes: str
    no: str

    def successor(self, is_yes: bool) -> str:
        return self.yes if is_yes else self.no

class OutcomeNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["outcome"] = "outcome"
    id: str
    outcome: str
    pill: str
    matrix: str = "other"
    summary: str

Node = Annotated[Union[QuestionNode, OutcomeNode], Field(discriminator="kind")]

class DecisionGraph(BaseModel):
    """Immutable lookup table of question and outcome nodes.

    The graph carries no traversal behaviour of its own; the engine reads it
    through ``resolve`` and never mutates it.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    title: str = ""
    entry_id: str
    require_explanation: bool = True
    nodes: Dict[str, Node]

    @classmethod
    def build(cls, name: str, entry_id: str, nodes: List[Union[QuestionNode, OutcomeNode]], **kwargs) -> "DecisionGraph":
        table = {}
        for node in nodes:
            if node.id in table:
                raise GraphIntegrityError(f"Duplicate node id '{node.id}' in graph '{name}'", node_id=node.id)
            table[node.id] = node
        return cls(name=name, entry_id=entry_id, nodes=table, **kwargs)

    def resolve(self, node_id: Optional[str]) -> Optional[Union[QuestionNode, OutcomeNode]]:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    @property
    def entry(self) -> QuestionNode:
        node = self.resolve(self.entry_id)
        if not isinstance(node, QuestionNode):
            raise GraphIntegrityError(f"Entry point '{self.entry_id}' is not a question in graph '{self.name}'", node_id=self.entry_id)
        return node

    def questions(self) -> List[QuestionNode]:
        return [n for n in self.nodes.values() if isinstance(n, QuestionNode)]

    def outcome_ids(self) -> Set[str]:
        return {n.id for n in self.nodes.values() if isinstance(n, OutcomeNode)}

    def reachable_ids(self) -> Set[str]:
        seen = set()
        stack = [self.entry_id]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            node = self.resolve(node_id)
            if isinstance(node, QuestionNode):
                stack.extend([node.yes, node.no])
        return seen

    def paths(self) -> List[Tuple[List[bool], str]]:
        """Every answer sequence from the entry point with the outcome it reaches."""
        found = []

        def walk(node_id: str, answers: List[bool]):
            node = self.resolve(node_id)
            if isinstance(node, OutcomeNode):
                found.append((answers, node.id))
                return
            if node is None:
                return
            walk(node.yes, answers + [True])
            walk(node.no, answers + [False])

        self.check_integrity()
        walk(self.entry_id, [])
        return found

    def check_integrity(self):
        """Raise GraphIntegrityError for a bad entry, a dangling successor or a cycle."""
        if not isinstance(self.resolve(self.entry_id), QuestionNode):
            raise GraphIntegrityError(f"Entry point '{self.entry_id}' is not a question in graph '{self.name}'", node_id=self.entry_id)
        for question in self.questions():
            for label, target in (("yes", question.yes), ("no", question.no)):
                if target not in self.nodes:
                    raise GraphIntegrityError(
                        f"Node '{question.id}' {label} -> '{target}' references an unknown node in graph '{self.name}'",
                        node_id=question.id,
                        target_id=target,
                    )

        # depth-first, tracking the nodes on the current path
        on_path: Set[str] = set()
        done: Set[str] = set()

        def visit(node_id: str):
            if node_id in done:
                return
            if node_id in on_path:
                raise GraphIntegrityError(f"Cycle through '{node_id}' in graph '{self.name}'", node_id=node_id)
            node = self.nodes[node_id]
            if isinstance(node, QuestionNode):
                on_path.add(node_id)
                visit(node.yes)
                visit(node.no)
                on_path.discard(node_id)
            done.add(node_id)

        visit(self.entry_id)
