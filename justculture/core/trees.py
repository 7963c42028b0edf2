from typing import Dict
from justculture.models.decision_graph import DecisionGraph, QuestionNode, OutcomeNode

# Outcomes are shared by every tree variant; only the questions and their
# ordering differ.
OUTCOMES = [
    OutcomeNode(
        id="END_EXPECTED",
        outcome="Expected Behaviour → Recognition",
        pill="Expected",
        matrix="expected",
        summary="Classification: Expected Behaviour\nRecommended response: Recognition",
    ),
    OutcomeNode(
        id="END_SUPERVISOR",
        outcome="Supervisor subject to Just Culture Process",
        pill="Supervisor",
        matrix="supervisor",
        summary="Classification: Supervisor subject to Just Culture Process\n"
                "Recommended response: Apply the Just Culture Process for supervisory instruction/expectations.",
    ),
    OutcomeNode(
        id="END_DELIBERATE",
        outcome="Deliberate Act → Dismissal",
        pill="Deliberate",
        matrix="dismissal",
        summary="Classification: Deliberate Act\nRecommended response: Dismissal (per matrix)",
    ),
    OutcomeNode(
        id="END_RECKLESS",
        outcome="Reckless Violation → Written Warning",
        pill="Reckless",
        matrix="warning",
        summary="Classification: Reckless Violation\nRecommended response: Written Warning (Initial, Subsequent or Final)",
    ),
    OutcomeNode(
        id="END_SYSTEM_INDUCED",
        outcome="System Induced Violation → Coaching",
        pill="System-induced",
        matrix="coaching",
        summary="Classification: System Induced Violation\nRecommended response: Coaching (and improve system/procedure)",
    ),
    OutcomeNode(
        id="END_NEGLIGENT",
        outcome="Negligent Error → Written Warning",
        pill="Negligent",
        matrix="warning",
        summary="Classification: Negligent Error\nRecommended response: Written Warning",
    ),
    OutcomeNode(
        id="END_SYSTEM_PRODUCED",
        outcome="System Produced Error → Coaching",
        pill="System-produced",
        matrix="coaching",
        summary="Classification: System Produced Error\n"
                "Recommended response: Coaching (and improve training/procedure/requirements)",
    ),
    OutcomeNode(
        id="END_KNOWLEDGE",
        outcome="Knowledge-based / Rule-based Mistake → Written Warning",
        pill="Knowledge-based",
        matrix="warning",
        summary="Classification: Knowledge-based / Rule-based Mistake\nRecommended response: Written Warning",
    ),
    OutcomeNode(
        id="END_HUMAN_ERROR",
        outcome="Human Error (Slip or Lapse) → Coaching",
        pill="Human error",
        matrix="coaching",
        summary="Classification: Human Error (Slip or Lapse)\nRecommended response: Coaching",
    ),
]

STANDARD_TREE = DecisionGraph.build(
    "standard",
    "Q1",
    [
        QuestionNode(id="Q1", prompt="Were the rules / procedures known and understood?", yes="Q2", no="END_SUPERVISOR"),
        QuestionNode(id="Q2", prompt="Were the rules / procedures followed?", yes="END_EXPECTED", no="Q3"),
        QuestionNode(id="Q3", prompt="Was the individual instructed not to follow the rules / procedures?", yes="END_SUPERVISOR", no="Q4"),
        QuestionNode(id="Q4", prompt="Did the individual intentionally not follow procedures and not care about the consequences?", yes="END_DELIBERATE", no="Q5"),
        QuestionNode(id="Q5", prompt="Was it a conscious decision not to follow the rules or procedure?", yes="Q6", no="Q8"),
        QuestionNode(id="Q6", prompt="Are the procedures reasonable and workable?", yes="END_RECKLESS", no="END_SYSTEM_INDUCED"),
        QuestionNode(id="Q8", prompt="Would another person with similar experience make the same decision?", yes="Q9", no="Q10"),
        QuestionNode(id="Q9", prompt="Has the individual been found not to follow the rules / procedures before?", yes="END_KNOWLEDGE", no="END_HUMAN_ERROR"),
        QuestionNode(id="Q10", prompt="Were procedures, training, selection process or experience requirements clear and adequate?", yes="END_NEGLIGENT", no="END_SYSTEM_PRODUCED"),
    ] + OUTCOMES,
    title="Just Culture Decision Tool",
    require_explanation=True,
)

# Earlier ordering of the tool: compliance is asked before knowledge and
# explanations were optional.
LEGACY_TREE = DecisionGraph.build(
    "legacy",
    "L1",
    [
        QuestionNode(id="L1", prompt="Were the rules / procedures followed?", yes="END_EXPECTED", no="L2"),
        QuestionNode(id="L2", prompt="Were the rules / procedures known and understood?", yes="L3", no="END_SUPERVISOR"),
        QuestionNode(id="L3", prompt="Was the individual instructed not to follow the rules / procedures?", yes="END_SUPERVISOR", no="L4"),
        QuestionNode(id="L4", prompt="Did the individual intentionally not follow procedures and not care about the consequences?", yes="END_DELIBERATE", no="L5"),
        QuestionNode(id="L5", prompt="Was it a conscious decision not to follow the rules or procedure?", yes="L6", no="L7"),
        QuestionNode(id="L6", prompt="Are the procedures reasonable and workable?", yes="END_RECKLESS", no="END_SYSTEM_INDUCED"),
        QuestionNode(id="L7", prompt="Would another person with similar experience make the same decision?", yes="L8", no="L9"),
        QuestionNode(id="L8", prompt="Has the individual been found not to follow the rules / procedures before?", yes="END_KNOWLEDGE", no="END_HUMAN_ERROR"),
        QuestionNode(id="L9", prompt="Were procedures, training, selection process or experience requirements clear and adequate?", yes="END_NEGLIGENT", no="END_SYSTEM_PRODUCED"),
    ] + OUTCOMES,
    title="Just Culture Decision Tool (legacy ordering)",
    require_explanation=False,
)

TREES: Dict[str, DecisionGraph] = {
    STANDARD_TREE.name: STANDARD_TREE,
    LEGACY_TREE.name: LEGACY_TREE,
}

for _tree in TREES.values():
    _tree.check_integrity()

def get_tree(name: str) -> DecisionGraph:
    tree = TREES.get(name)
    if tree is None:
        raise ValueError(f"Unknown decision tree: {name}")
    return tree
