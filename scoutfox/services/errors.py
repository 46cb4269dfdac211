from __future__ import annotations


class ScoutFoxError(Exception):
    pass


class ResponseValidationError(ScoutFoxError):
    pass


class ProductExtractionError(ResponseValidationError):
    pass


class RateLimitError(ScoutFoxError):
    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: int,
        scope: str,
    ) -> None:
        super().__init__(message)
        self.retry_after_seconds = max(1, retry_after_seconds)
        self.scope = scope


class SourceTimeoutError(ScoutFoxError):
    pass


class QuotaExceededError(ScoutFoxError):
    pass


class ConfigurationError(ScoutFoxError):
    pass


class ProviderRequestError(ScoutFoxError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TitleOptimizationError(ScoutFoxError):
    pass
