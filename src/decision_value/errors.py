"""Typed errors raised by the decision-value engine."""


class InvalidInputError(ValueError):
    """Raised when inputs violate a documented precondition.

    Blocks computation; callers map it to an actionable message.
    """


class WorkerError(RuntimeError):
    """Raised inside a background worker for anything other than invalid input."""

    def __init__(self, request_id: int, message: str):
        super().__init__(message)
        self.request_id = request_id

    def __reduce__(self):
        return (self.__class__, (self.request_id, str(self)))
