from datetime import datetime
from typing import Any, Dict, Optional
from justculture.core.errors import InvalidTransitionError
from justculture.services.traversal_engine import Status, TraversalEngine, answer_label

NOT_COMPLETE_MESSAGE = "Finish the decision first."

class ExportService:
    """Builds the copy/download text and the printable page for a finished assessment."""

    def _require_complete(self, engine: TraversalEngine):
        if engine.status != Status.COMPLETE:
            raise InvalidTransitionError(NOT_COMPLETE_MESSAGE)

    def summary_text(self, engine: TraversalEngine, now: Optional[datetime] = None) -> str:
        self._require_complete(engine)
        return engine.build_summary(now=now)

    def download_filename(self, engine: TraversalEngine, now: Optional[datetime] = None) -> str:
        self._require_complete(engine)
        timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        case_ref = engine.metadata.case_ref
        # header values are latin-1 on the wire
        safe_ref = "".join([c if c.isascii() and c.isalnum() else "_" for c in case_ref]) if case_ref else "assessment"
        return f"just_culture_{safe_ref}_{timestamp}.txt"

    def print_context(self, engine: TraversalEngine, now: Optional[datetime] = None) -> Dict[str, Any]:
        self._require_complete(engine)
        outcome = engine.outcome
        return {
            "title": engine.graph.title,
            "metadata": engine.metadata,
            "outcome": outcome,
            "steps": [
                {"number": i, "question": s.question, "label": answer_label(s.answer), "explanation": s.explanation}
                for i, s in enumerate(engine.steps, start=1)
            ],
            "summary": engine.build_summary(now=now),
        }
