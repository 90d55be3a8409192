"""Typed errors raised by the sync engine."""

from datetime import datetime
from typing import Any, Optional

from app.constants.error_reasons import ErrorCode, explain_error


class SyncError(Exception):
    """Base class for errors that end one provider's sync pass."""

    code: ErrorCode = ErrorCode.OTHER


class ProviderError(SyncError):
    """A vendor call failed (non-2xx response or transport failure)."""

    def __init__(
        self,
        provider: str,
        status_code: Optional[int] = None,
        body: Any = None,
        detail: Optional[str] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if code is None:
            code = ErrorCode.VENDOR_HTTP_ERROR if status_code is not None else ErrorCode.VENDOR_TRANSPORT_ERROR
        self.code = code
        super().__init__(explain_error(code, {
            "provider": provider,
            "status_code": status_code,
            "body": body,
            "detail": detail or "",
        }))


class MissingCredentialError(ProviderError):
    """The provider has no API token configured."""

    def __init__(self, provider: str, setting: str):
        self.provider = provider
        self.status_code = None
        self.body = None
        self.setting = setting
        self.code = ErrorCode.MISSING_CREDENTIAL
        SyncError.__init__(self, explain_error(self.code, {"provider": provider, "setting": setting}))


class CollisionError(SyncError):
    """A write on ``(source, external_id)`` could not be resolved as a normal update."""

    def __init__(self, source: str, external_id: str, date: Optional[datetime], code: ErrorCode = ErrorCode.COLLISION):
        self.source = source
        self.external_id = external_id
        self.date = date
        self.code = code
        super().__init__(explain_error(code, {
            "source": source,
            "external_id": external_id,
            "date": date.isoformat() if date else "unknown date",
        }))
