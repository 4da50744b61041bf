"""Command-line interface for permit card recognition and splitting.

Provides subcommands for recognizing every page of a permit card PDF,
splitting it into one file per card, and extracting case-file fields
from a resolution.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from transit_ocr.errors import PipelineError
from transit_ocr.pipeline.batch_processor import BatchOcrProcessor
from transit_ocr.pipeline.case_file_extractor import CaseFileExtractor
from transit_ocr.pipeline.models import BatchResult, PageResult
from transit_ocr.pipeline.splitter import DocumentSplitter
from transit_ocr.utils.config import load_config
from transit_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _print_progress(page_number: int, total_pages: int, result: PageResult) -> None:
    status = "ok" if result.success else f"failed ({result.error})"
    print(
        f"Page [{page_number}/{total_pages}]: "
        f"code={result.identifier_code or '-'} "
        f"plate={result.vehicle_plate or '-'} {status}"
    )


def _batch_to_dict(batch: BatchResult) -> dict[str, object]:
    return {
        "source": str(batch.source_path),
        "summary": batch.summary(),
        "pages": [page.to_dict() for page in batch.pages],
    }


def _print_summary(title: str, summary: dict[str, int]) -> None:
    """Print a per-page success/failure summary to stdout.

    Args:
        title: Heading line.
        summary: Counts to print, in order.
    """
    print(f"\n{'=' * 50}")
    print(title)
    print(f"{'=' * 50}")
    for key, value in summary.items():
        print(f"{key.capitalize() + ':':<12}{value}")


def process_document(
    pdf_path: Path,
    output_json: Path | None = None,
    verbose: bool = False,
) -> BatchResult:
    """Recognize every page of a permit card PDF.

    Args:
        pdf_path: Source PDF.
        output_json: Optional path for the per-page results as JSON.
        verbose: Whether to print per-page progress.

    Returns:
        The batch result.
    """
    config = load_config()
    processor = BatchOcrProcessor(config)
    if verbose:
        processor.set_progress_callback(_print_progress)

    batch = asyncio.run(processor.process_document(pdf_path))

    if output_json:
        output_json.parent.mkdir(parents=True, exist_ok=True)
        output_json.write_text(json.dumps(_batch_to_dict(batch), indent=2))
        logger.info("Results written to %s", output_json)

    _print_summary("Batch Recognition Complete", batch.summary())
    return batch


def split_document(
    pdf_path: Path,
    output_dir: Path,
    verbose: bool = False,
) -> dict[str, int]:
    """Recognize a permit card PDF and split it into one file per page.

    Args:
        pdf_path: Source PDF.
        output_dir: Directory for the per-page files.
        verbose: Whether to print per-page progress.

    Returns:
        Split summary with total, created, and failed counts.
    """
    config = load_config()
    processor = BatchOcrProcessor(config)
    if verbose:
        processor.set_progress_callback(_print_progress)

    batch = asyncio.run(processor.process_document(pdf_path))
    outcome = DocumentSplitter(config.split).split(pdf_path, batch, output_dir)

    if verbose:
        for created in outcome.created:
            print(f"Created {created.file_name} (page {created.page})")
    for error in outcome.errors:
        print(f"Page {error.page} not written: {error.error_message}", file=sys.stderr)

    summary = outcome.summary()
    _print_summary("Document Split Complete", summary)
    print(f"{'Output:':<12}{outcome.output_dir}")
    return summary


def extract_case_file(pdf_path: Path, page_number: int = 1) -> dict[str, object]:
    """Extract case-file fields from one page of a resolution PDF.

    Args:
        pdf_path: Resolution PDF.
        page_number: 1-based page to read.

    Returns:
        Extraction outcome as a dictionary.
    """
    config = load_config()
    extractor = CaseFileExtractor(config)
    extraction = asyncio.run(extractor.extract(pdf_path, page_number))
    result = extraction.to_dict()
    result["filename"] = pdf_path.name
    return result


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Permit card OCR and document splitter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Recognize every page of a permit card PDF"
    )
    process_parser.add_argument("pdf", type=Path, help="Source PDF")
    process_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    process_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    split_parser = subparsers.add_parser(
        "split", help="Split a permit card PDF into one file per card"
    )
    split_parser.add_argument("pdf", type=Path, help="Source PDF")
    split_parser.add_argument("output_dir", type=Path, help="Destination directory")
    split_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    case_parser = subparsers.add_parser(
        "casefile", help="Extract case-file fields from a resolution PDF"
    )
    case_parser.add_argument("pdf", type=Path, help="Resolution PDF")
    case_parser.add_argument(
        "--page", type=int, default=1, help="Page to read (default: 1)"
    )
    case_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(load_config().log_level)

    if not args.pdf.exists():
        print(f"Error: {args.pdf} does not exist", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "process":
            process_document(args.pdf, args.output, args.verbose)
        elif args.command == "split":
            split_document(args.pdf, args.output_dir, args.verbose)
        elif args.command == "casefile":
            result = extract_case_file(args.pdf, args.page)
            output_str = json.dumps(result, indent=2, ensure_ascii=False)
            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                args.output.write_text(output_str)
                print(f"Output written to {args.output}")
            else:
                print(output_str)
    except PipelineError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
