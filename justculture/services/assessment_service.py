import uuid
from collections import OrderedDict
from typing import Optional
from justculture.core.errors import SnapshotError
from justculture.core.log import global_log
from justculture.models.decision_graph import DecisionGraph
from justculture.services.snapshot_store import SnapshotStore
from justculture.services.traversal_engine import TraversalEngine

class AssessmentService:
    """Keeps one traversal engine per browser session.

    Engines never share state. When "Remember" is on for a session its state
    is written to the snapshot store after every change and restored the next
    time that session id is seen.

    At most ``max_sessions`` engines are held; the least recently used one is
    dropped first. A dropped session that had Remember on comes back from its
    snapshot, others start over.
    """

    def __init__(self, graph: DecisionGraph, store: SnapshotStore, require_explanation: Optional[bool] = None, keep_metadata_on_reset: bool = True, max_sessions: int = 1000):
        self.graph = graph
        self.store = store
        self.require_explanation = require_explanation
        self.keep_metadata_on_reset = keep_metadata_on_reset
        self.max_sessions = max(1, max_sessions)
        self.sessions: "OrderedDict[str, TraversalEngine]" = OrderedDict()

    def _new_engine(self) -> TraversalEngine:
        return TraversalEngine(
            self.graph,
            require_explanation=self.require_explanation,
            keep_metadata_on_reset=self.keep_metadata_on_reset,
        )

    def create_session(self, session_id: Optional[str] = None) -> str:
        session_id = session_id or str(uuid.uuid4())
        engine = self._new_engine()

        snapshot = self.store.load(session_id)
        if snapshot and snapshot.remember_enabled:
            try:
                engine.restore(snapshot)
                global_log(f"Restored remembered assessment {session_id}", level="INFO", component="Assessment")
            except SnapshotError as e:
                global_log(f"Discarding snapshot {session_id}: {e}", level="WARNING", component="Assessment")
                self.store.clear(session_id)
                engine = self._new_engine()

        self.sessions[session_id] = engine
        self.sessions.move_to_end(session_id)
        while len(self.sessions) > self.max_sessions:
            evicted, _ = self.sessions.popitem(last=False)
            global_log(f"Dropped idle assessment {evicted}", level="DEBUG", component="Assessment")
        return session_id

    def get_engine(self, session_id: str) -> TraversalEngine:
        engine = self.sessions.get(session_id)
        if engine is None:
            raise ValueError("Session not found")
        self.sessions.move_to_end(session_id)
        return engine

    def ensure_session(self, session_id: Optional[str]) -> str:
        if session_id and session_id in self.sessions:
            return session_id
        return self.create_session(session_id)

    def persist(self, session_id: str):
        engine = self.get_engine(session_id)
        if engine.remember_enabled:
            self.store.save(session_id, engine.snapshot())

    def set_remember(self, session_id: str, enabled: bool):
        engine = self.get_engine(session_id)
        engine.set_remember(enabled)
        if enabled:
            self.store.save(session_id, engine.snapshot())
        else:
            self.store.clear(session_id)

