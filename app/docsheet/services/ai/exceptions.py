"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when the extraction service call fails."""

    pass


class RecordValidationError(Exception):
    """Raised when an extraction reply does not match the schema."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class MissingFieldError(RecordValidationError):
    """A required property is absent from the reply."""

    def __init__(self, path: str):
        super().__init__(f"Missing field '{path}'", path)


class TypeMismatchError(RecordValidationError):
    """A property holds a value of the wrong type."""

    def __init__(self, path: str, expected: str, actual: str):
        where = f"'{path}'" if path else "response"
        super().__init__(f"Field {where} expected {expected}, got {actual}", path)
        self.expected = expected
        self.actual = actual
