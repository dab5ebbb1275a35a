"""Document text extraction through remote OCR chat-completion APIs."""

__version__ = "0.1.0"

from xtract.config import Config, ExtractionConfig, OCRConfig
from xtract.exceptions import (
    ApiError,
    ApiTimeoutError,
    ConfigDirError,
    ConfigError,
    ConfigParseError,
    EncodeError,
    ImageError,
    LoadError,
    NoChoiceError,
    OCRError,
    OutputWriteError,
    ParseError,
    RequestError,
    XtractError,
)
from xtract.extractor import DocumentExtractor
from xtract.image import encode_image_to_base64, load_image
from xtract.models import BatchFailure, BatchResult, DocumentMetadata, ExtractedDocument
from xtract.ocr import OCRClient

__all__ = [
    # Core classes
    "DocumentExtractor",
    "OCRClient",
    # Image handling
    "load_image",
    "encode_image_to_base64",
    # Data models
    "ExtractedDocument",
    "DocumentMetadata",
    "BatchResult",
    "BatchFailure",
    # Configuration
    "Config",
    "OCRConfig",
    "ExtractionConfig",
    # Exceptions
    "XtractError",
    "ConfigError",
    "ConfigDirError",
    "ConfigParseError",
    "ImageError",
    "LoadError",
    "EncodeError",
    "OCRError",
    "RequestError",
    "ApiTimeoutError",
    "ApiError",
    "ParseError",
    "NoChoiceError",
    "OutputWriteError",
]
