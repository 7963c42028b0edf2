class DecisionToolError(Exception):
    """Base class for every error raised by the assessment core."""
    pass

class ValidationError(DecisionToolError, ValueError):
    """Raised when an answer is rejected, e.g. a blank explanation."""
    pass

class NoHistoryError(DecisionToolError):
    """Raised by back() when no question has been answered yet."""
    pass

class InvalidTransitionError(DecisionToolError):
    """Raised when an operation is called in a state that does not allow it."""
    pass

class GraphIntegrityError(DecisionToolError, RuntimeError):
    """Raised when a decision graph references a node it does not define.

    This is a configuration defect, callers should abort the assessment
    rather than retry.
    """

    def __init__(self, message: str, node_id: str = None, target_id: str = None):
        super().__init__(message)
        self.node_id = node_id
        self.target_id = target_id

class SnapshotError(DecisionToolError, ValueError):
    """Raised when a saved snapshot does not fit the decision graph."""
    pass
