"""Session orchestrator exceptions."""


class SessionError(Exception):
    """Base class for orchestrator errors."""
    pass


class AnswerValidationError(SessionError):
    """Submitted answer is not acceptable for the question; recoverable by re-prompting."""

    def __init__(self, question_id: str, message: str):
        super().__init__(message)
        self.question_id = question_id
        self.message = message


class SessionBusyError(SessionError):
    """A persist/finalize call for this session is still in flight."""
    pass


class InvalidTransitionError(SessionError):
    """Action not allowed in the session's current state."""
    pass


class UnknownQuestionError(SessionError):
    """Question id is not in the catalog."""
    pass


class SessionClosedError(SessionError):
    """The session was abandoned."""
    pass
