class RecoError(Exception):
    """Base error for the recommendation service. Carries the HTTP status it maps to."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: str = "", *, reason: str | None = None):
        super().__init__(message or self.error)
        self.reason = reason or message or self.error

    def to_payload(self) -> dict:
        return {"error": self.error, "reason": self.reason}


class InputValidationError(RecoError):
    status_code = 400
    error = "Invalid payload"


class OriginRejectedError(RecoError):
    status_code = 403
    error = "Origin not allowed"


class RateLimitedError(RecoError):
    status_code = 429
    error = "Rate limited"


class UpstreamUnavailableError(RecoError):
    """Steam library (usage history) could not be fetched."""

    status_code = 502
    error = "Upstream unavailable"


class CatalogUnavailableError(RecoError):
    status_code = 503
    error = "Catalog unavailable"


class RankingServiceError(RecoError):
    """The external ranking model failed (transport, HTTP status or empty output)."""

    status_code = 502
    error = "Ranking service failure"

    def __init__(self, message: str = "", *, status: int | None = None, reason: str | None = None):
        super().__init__(message, reason=reason)
        self.status = status


class RankingParseError(RankingServiceError):
    """Model output contained no parseable JSON, even after brace recovery."""

    def __init__(self, message: str, *, excerpt: str = ""):
        super().__init__(message, reason=f"{message}. Raw snippet: {excerpt}")
        self.excerpt = excerpt


class ReconciliationEmptyError(RecoError):
    """No returned pick maps to a known catalog entry. A "no result" outcome, not a crash."""

    status_code = 404
    error = "No matching recommendations"


class NotFoundError(RecoError):
    status_code = 404
    error = "Not found"
