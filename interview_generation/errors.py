"""
Failure taxonomy for one backend round-trip.

Every member is caught at the pipeline boundary and turned into a
fallback record; none of them reaches the caller as an exception.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    NO_CREDENTIAL = "NoCredential"
    NETWORK_ERROR = "NetworkError"
    HTTP_ERROR = "HttpError"
    EMPTY_CONTENT = "EmptyContent"
    MALFORMED_JSON = "MalformedJson"
    SCHEMA_MISMATCH = "SchemaMismatch"


class GenerationFailure(Exception):
    """Base class for classified backend failures."""

    kind: FailureKind

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value

    @property
    def diagnostic(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NoCredentialError(GenerationFailure):
    kind = FailureKind.NO_CREDENTIAL


class NetworkError(GenerationFailure):
    kind = FailureKind.NETWORK_ERROR


class HttpError(GenerationFailure):
    kind = FailureKind.HTTP_ERROR

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemaMismatchError(GenerationFailure):
    kind = FailureKind.SCHEMA_MISMATCH


class ExtractError(GenerationFailure):
    """Raised by the response extractor; keeps the raw text for salvage/logging."""

    kind = FailureKind.MALFORMED_JSON

    def __init__(self, message: str = "", raw: str = ""):
        super().__init__(message)
        self.raw = raw


class EmptyContentError(ExtractError):
    kind = FailureKind.EMPTY_CONTENT


class MalformedJsonError(ExtractError):
    kind = FailureKind.MALFORMED_JSON
