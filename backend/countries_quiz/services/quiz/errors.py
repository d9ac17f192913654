class QuizError(Exception):
    """Base class for quiz domain errors."""


class InvalidInput(QuizError):
    """Malformed caller arguments (blank player name, non-numeric score fields)."""


class InvalidState(QuizError):
    """Operation not allowed in the session's current phase."""


class PersistenceFailure(QuizError):
    """The score store could not save or load entries."""
