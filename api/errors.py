"""Error taxonomy shared by the store, the pipeline and the HTTP layer.

Every error carries a machine-readable ``kind`` and the HTTP status the API
answers with; ``api.main`` renders them as ``{"error": kind, "detail": ...}``.
"""

from __future__ import annotations


class LogHubError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(LogHubError):
    """Missing or malformed input. Raised before any store access."""

    kind = "validation_error"
    status_code = 400


class ProjectNotFound(LogHubError):
    kind = "not_found"
    status_code = 404


class StoreUnavailable(LogHubError):
    """The record store could not be reached or failed to answer."""

    kind = "store_unavailable"
    status_code = 503


class CascadeDeleteFailure(LogHubError):
    """One leg of a project's cascading delete failed.

    ``leg`` is ``"logs"`` or ``"project"``. Legs already completed are not
    rolled back, so records may be gone while the project row remains.
    """

    kind = "cascade_delete_failure"
    status_code = 500

    def __init__(self, detail: str, leg: str):
        super().__init__(detail)
        self.leg = leg


class AIServiceUnavailable(LogHubError):
    kind = "ai_unavailable"
    status_code = 503


class AIServiceError(LogHubError):
    kind = "ai_error"
    status_code = 502
