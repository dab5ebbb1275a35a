"""Data models for xtract."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class DocumentMetadata:
    """Where a document came from."""

    source: str  # File name, without directories
    page_count: Optional[int] = 1  # One image is always one page
    confidence: Optional[float] = None  # The API reports none


@dataclass(frozen=True)
class ExtractedDocument:
    """Result of extracting one image."""

    text: str  # Markdown or plain text, as returned by the API
    format: str
    metadata: DocumentMetadata


@dataclass(frozen=True)
class BatchFailure:
    """An image that was skipped during batch extraction."""

    source: str
    path: Path
    error: Exception


@dataclass
class BatchResult:
    """Outcome of a batch: documents in input order plus skipped images."""

    documents: list[ExtractedDocument] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.documents)

    @property
    def failed(self) -> int:
        return len(self.failures)
