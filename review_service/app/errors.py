"""
errors.py — error taxonomy for the review endpoint + the provider error classifier.

The provider gives us no structured error codes we can rely on, so classification
is substring matching on the exception message. Keep that matching in
classify_error() and nowhere else.
"""
from enum import Enum

from .models import ErrorResponse
from .validation import REQUIRED_FIELDS


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    THROTTLING = "throttling"
    CONTENT_POLICY = "content_policy"
    UNKNOWN = "unknown"


class ReviewServiceError(Exception):
    status_code = 500
    message = "感想文の生成中にエラーが発生しました。"

    def __init__(self, message: str | None = None, details=None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_payload(self, include_details: bool = False) -> dict:
        body = ErrorResponse(
            error=self.message,
            details=self.details if include_details else None,
        )
        return body.model_dump(exclude_none=True)


class ReviewValidationError(ReviewServiceError):
    status_code = 400
    required = REQUIRED_FIELDS

    def __init__(self, violations: list[str]):
        super().__init__(violations[0], details=violations)
        self.violations = violations

    def to_payload(self, include_details: bool = False) -> dict:
        # Violations are client-facing, so they are returned in every mode
        body = ErrorResponse(error=self.message, details=self.violations, required=list(self.required))
        return body.model_dump(exclude_none=True)


class AuthenticationError(ReviewServiceError):
    status_code = 401
    message = "APIキーが無効です。管理者に連絡してください。"


class ThrottlingError(ReviewServiceError):
    status_code = 429
    message = "リクエスト制限に達しました。しばらく待ってから再試行してください。"


class ContentPolicyError(ReviewServiceError):
    status_code = 400
    message = "コンテンツが安全性フィルターによってブロックされました。別の焦点や表現で再試行してください。"

    def __init__(self, message: str | None = None, feedback: dict | None = None, details=None):
        super().__init__(message, details=details)
        self.feedback = feedback

    @classmethod
    def from_prompt_feedback(cls, feedback: dict) -> "ContentPolicyError":
        return cls("リクエストが安全性フィルターによってブロックされました。", feedback=feedback)

    def to_payload(self, include_details: bool = False) -> dict:
        return ErrorResponse(error=self.message, feedback=self.feedback).model_dump(exclude_none=True)


class EmptyResponseError(ReviewServiceError):
    status_code = 500


class GenerationError(ReviewServiceError):
    status_code = 500


_KIND_TO_ERROR = {
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.THROTTLING: ThrottlingError,
    ErrorKind.CONTENT_POLICY: ContentPolicyError,
    ErrorKind.UNKNOWN: GenerationError,
}


def classify_error(error: BaseException) -> ErrorKind:
    """Map a provider exception to an ErrorKind by message substrings, first match wins."""
    text = str(error) if error is not None else ""

    if "API key" in text or "API_KEY" in text:
        return ErrorKind.AUTHENTICATION
    if "quota" in text or "rate limit" in text:
        return ErrorKind.THROTTLING
    if "SAFETY" in text or "blocked" in text:
        return ErrorKind.CONTENT_POLICY
    return ErrorKind.UNKNOWN


def error_for(error: BaseException) -> ReviewServiceError:
    """Wrap a caught provider exception in the matching ReviewServiceError."""
    if isinstance(error, ReviewServiceError):
        return error
    error_cls = _KIND_TO_ERROR[classify_error(error)]
    return error_cls(details=str(error))
