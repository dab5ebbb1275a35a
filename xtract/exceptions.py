"""Custom exceptions for xtract."""

from typing import Optional


class XtractError(Exception):
    """Base exception for xtract errors."""

    pass


class ConfigError(XtractError):
    """Raised when the configuration file cannot be read or written."""

    pass


class ConfigDirError(ConfigError):
    """Raised when the platform config directory cannot be determined."""

    pass


class ConfigParseError(ConfigError):
    """Raised when an existing config file is malformed."""

    pass


class ImageError(XtractError):
    """Base exception for image loading and encoding errors."""

    pass


class LoadError(ImageError):
    """Raised when an image file is missing, unreadable or undecodable."""

    pass


class EncodeError(ImageError):
    """Raised when an image cannot be serialized to PNG."""

    pass


class OCRError(XtractError):
    """Base exception for OCR API errors."""

    pass


class RequestError(OCRError):
    """Raised when the request never produced an HTTP response."""

    pass


class ApiTimeoutError(RequestError):
    """Raised when the OCR API does not answer within the client timeout."""

    pass


class ApiError(OCRError):
    """Raised when the OCR API answers with a non-success status."""

    def __init__(self, status_code: int, body: str, reason: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        status = f"{status_code} {reason}" if reason else str(status_code)
        super().__init__(f"OCR API request failed with status {status}: {body}")


class ParseError(OCRError):
    """Raised when a success response is not a valid chat completion."""

    pass


class NoChoiceError(OCRError):
    """Raised when a chat completion contains no choices."""

    pass


class OutputWriteError(XtractError):
    """Raised when extracted text cannot be written to the output file."""

    pass
