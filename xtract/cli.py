from __future__ import annotations

import argparse
import sys
from pathlib import Path

from xtract import __version__
from xtract.config import Config
from xtract.exceptions import OutputWriteError, XtractError
from xtract.extractor import DocumentExtractor
from xtract.logger import get_logger, set_run_id, setup_logging
from xtract.models import ExtractedDocument

logger = get_logger(__name__)

DOCUMENT_SEPARATOR = "\n---\n\n"
EMPTY_BATCH_WARNING = "Warning: No documents were successfully extracted"


def _verbose_parent(default) -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Enable verbose (debug) logging.",
    )
    return parent


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="xtract",
        description="OCR-powered document extraction through a remote vision model API.",
        parents=[_verbose_parent(default=False)],
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    # -v is accepted after the subcommand too; SUPPRESS keeps an earlier -v intact
    sub_parent = _verbose_parent(default=argparse.SUPPRESS)

    extract = sub.add_parser(
        "extract", help="Extract text from document images.", parents=[sub_parent]
    )
    extract.add_argument(
        "images",
        nargs="+",
        type=Path,
        help="Input image file(s).",
    )
    extract.add_argument(
        "-p",
        "--prompt",
        default=None,
        help="Custom OCR prompt (default depends on --format).",
    )
    extract.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (if not given, prints to stdout).",
    )
    extract.add_argument(
        "-f",
        "--format",
        choices=("text", "markdown"),
        default=None,
        help="Output format (overrides the config file for this run).",
    )
    extract.add_argument(
        "--endpoint",
        default=None,
        help="API base URL (overrides the config file for this run).",
    )
    extract.add_argument(
        "--model",
        default=None,
        help="Model name (overrides the config file for this run).",
    )

    config = sub.add_parser("config", help="Show configuration.", parents=[sub_parent])
    config.add_argument(
        "--path",
        action="store_true",
        help="Show the configuration file path instead of its contents.",
    )
    return p


def format_documents(documents: list[ExtractedDocument]) -> str:
    """Render documents under ``=== source ===`` headers, separated by rules."""
    return DOCUMENT_SEPARATOR.join(
        f"=== {doc.metadata.source} ===\n\n{doc.text}\n" for doc in documents
    )


def write_output(text: str, out_file: Path) -> None:
    try:
        out_file.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Failed to write to {out_file}: {exc}") from exc
    logger.info("Results written", extra_data={"path": out_file})


def run_extract(args: argparse.Namespace) -> int:
    config = Config.load().with_overrides(
        output_format=args.format,
        api_endpoint=args.endpoint,
        model=args.model,
    )

    extractor = DocumentExtractor(config)
    try:
        documents = extractor.extract_batch(args.images, args.prompt)
    finally:
        extractor.client.close()

    if not documents:
        print(EMPTY_BATCH_WARNING, file=sys.stderr)
        return 0

    combined = format_documents(documents)
    if args.output is not None:
        write_output(combined, args.output)
    else:
        print(combined)

    logger.info("Extraction completed", extra_data={"documents": len(documents)})
    return 0


def run_config(args: argparse.Namespace) -> int:
    if args.path:
        print(Config.config_path())
    else:
        print(Config.load().to_yaml(), end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")
    set_run_id()

    handlers = {"extract": run_extract, "config": run_config}
    try:
        return handlers[args.command](args)
    except XtractError as exc:
        logger.debug("Command failed", extra_data={"error_type": type(exc).__name__})
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
