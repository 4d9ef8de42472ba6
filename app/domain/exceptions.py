class QuizServiceError(Exception):
    """Base class for errors raised by the quiz core."""


class DecodeAnomaly(QuizServiceError):
    """A serialized question set could not be parsed into a list of questions."""


class ValidationAnomaly(QuizServiceError):
    """A question or a submitted response failed structural validation."""


class StorageError(QuizServiceError):
    """The durable store is unreachable or rejected an operation."""


class CollaboratorError(QuizServiceError):
    """The AI provider failed, timed out or returned unusable output."""


class QuizNotFoundError(QuizServiceError):
    pass


class InvalidSubmissionError(QuizServiceError):
    pass


class ProviderUnavailableError(CollaboratorError):
    """No AI provider is configured. Retrying cannot succeed."""
