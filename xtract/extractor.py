"""Document extraction orchestration."""

from pathlib import Path
from typing import Iterable, Optional, Union

from xtract.config import Config
from xtract.exceptions import XtractError
from xtract.logger import Timer, get_logger
from xtract.models import BatchFailure, BatchResult, DocumentMetadata, ExtractedDocument
from xtract.ocr import OCRClient

logger = get_logger(__name__)

PathLike = Union[str, Path]


class DocumentExtractor:
    def __init__(self, config: Config, client: Optional[OCRClient] = None) -> None:
        """Initialize document extractor.

        Args:
            config: Settings snapshot. The output format is taken from here.
            client: OCR client. If None, creates default with config.
        """
        self.config = config
        self.client = client or OCRClient(config)

    def extract(self, image_path: PathLike, prompt: Optional[str] = None) -> ExtractedDocument:
        """Extract text and metadata from a single document image.

        Args:
            image_path: Path to the image file
            prompt: Custom OCR prompt. If None, the client picks one.

        Returns:
            ExtractedDocument tagged with the configured output format

        Raises:
            LoadError: If the image cannot be loaded (no request is sent)
            EncodeError: If the image cannot be encoded as PNG
            OCRError: If the API call fails
        """
        path = Path(image_path)
        source = path.name or "unknown"

        logger.info("Starting document extraction", extra_data={"source": source})

        with Timer("extraction") as timer:
            text = self.client.extract_from_image(path, prompt)

        document = ExtractedDocument(
            text=text,
            format=self.config.extraction.output_format,
            metadata=DocumentMetadata(source=source, page_count=1, confidence=None),
        )

        logger.info(
            "Document extraction completed",
            extra_data={
                "source": source,
                "character_count": len(text),
                "extraction_time_ms": timer.get_elapsed_ms(),
            },
        )
        return document

    def extract_batch_detailed(
        self, image_paths: Iterable[PathLike], prompt: Optional[str] = None
    ) -> BatchResult:
        """Extract every image in order, recording failures instead of raising."""
        paths = [Path(p) for p in image_paths]
        result = BatchResult()

        logger.info("Starting batch extraction", extra_data={"image_count": len(paths)})

        for index, path in enumerate(paths, start=1):
            logger.info(
                "Processing image",
                extra_data={"position": f"{index}/{len(paths)}", "path": path},
            )
            try:
                result.documents.append(self.extract(path, prompt))
            except XtractError as exc:
                logger.warning(
                    "Failed to extract document, skipping",
                    extra_data={
                        "path": path,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
                result.failures.append(
                    BatchFailure(source=path.name or "unknown", path=path, error=exc)
                )

        logger.info(
            "Batch extraction completed",
            extra_data={"succeeded": result.succeeded, "failed": result.failed},
        )
        return result

    def extract_batch(
        self, image_paths: Iterable[PathLike], prompt: Optional[str] = None
    ) -> list[ExtractedDocument]:
        """Extract multiple images, skipping the ones that fail.

        Returns:
            Documents for the images that succeeded, in input order. Empty if
            every image failed.
        """
        return self.extract_batch_detailed(image_paths, prompt).documents
