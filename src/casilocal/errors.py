"""Exception types for the CasiLocal content bot."""


class CasiLocalError(Exception):
    """Base class for all bot errors."""


class ConfigurationError(CasiLocalError):
    """A required credential or setting is missing.

    Raised before any network call is made.
    """


class UpstreamError(CasiLocalError):
    """An external service returned a non-success response."""

    def __init__(self, service: str, status_code: int | None, body: str):
        self.service = service
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"{service} request failed: {body}"
        else:
            message = f"{service} API error {status_code}: {body}"
        super().__init__(message)


class FormatError(CasiLocalError):
    """A content file does not have the expected frontmatter layout."""


class ParseError(CasiLocalError):
    """A completion could not be parsed into the expected shape."""
