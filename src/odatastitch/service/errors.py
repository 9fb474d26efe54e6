from __future__ import annotations

_BODY_PREVIEW_MAX_CHARS = 2048


class OdataStitchError(Exception):
    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return str(self.message)
        return f"{self.message}: {self.cause!r}"


class ConfigurationMissingError(OdataStitchError):
    """Raised when a mandatory startup option (credential or endpoint) is absent."""

    def __init__(self, missing):
        self.missing = tuple(missing)
        names = ", ".join(self.missing)
        super().__init__(f"Required configuration missing: {names}")


class TransportFailureError(OdataStitchError):
    """
    A retrieval request failed
    ==========================

    Covers connection errors, authentication failures, HTTP error statuses and
    response bodies that cannot be decoded. Always fatal for the enclosing
    fetch stage.
    """

    def __init__(self, message, status_code=0, reason=None, body=None, url=None, cause=None):
        self.status_code = int(status_code or 0)
        self.reason = reason
        self.body = _preview(body)
        self.url = url
        super().__init__(message, cause)

    def __str__(self):
        parts = [str(self.message)]
        if self.status_code:
            parts.append(f"status={self.status_code}")
        if self.reason:
            parts.append(f"reason={self.reason}")
        if self.url:
            parts.append(f"url={self.url}")
        if self.body:
            parts.append(f"body={self.body}")
        if self.cause is not None:
            parts.append(f"cause={self.cause!r}")
        return " ".join(parts)


def _preview(body, max_chars=_BODY_PREVIEW_MAX_CHARS):
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
    text = str(body)
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...<truncated>"
