"""Exceptions raised by schedule sources."""


class SourceError(Exception):
    """Base error for a schedule source that could not produce events."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class FetchError(SourceError):
    """Upstream responded with a non-success HTTP status."""

    def __init__(self, source: str, status_code: int, body: str):
        super().__init__(
            source,
            f"{source} request failed with status {status_code}: {body[:200]}"
        )
        self.status_code = status_code
        self.body = body


class ParseError(SourceError):
    """Upstream payload did not have the expected shape."""
