"""Command-line interface for demand sheet extraction and submission.

Provides subcommands for extracting rows from a single sheet, extracting a
folder of sheets into CSV, and running a full submission that appends to
the configured Google Sheet.
"""

import argparse
import base64
import csv
import json
import mimetypes
import sys
from pathlib import Path

from demand_ocr.extraction.assembler import DemandRow
from demand_ocr.extraction.catalog import Catalog
from demand_ocr.extraction.pipeline import DemandExtractor
from demand_ocr.ocr.documentai_engine import DocumentAIEngine
from demand_ocr.storage.staging import StagingLifecycleManager
from demand_ocr.submission import (
    SubmissionFailed,
    SubmissionOrchestrator,
    SubmissionRejected,
    SubmissionRequest,
)
from demand_ocr.utils.config import AppConfig, load_config
from demand_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.pdf")
_CSV_COLUMNS = ["filename", "date", "store_id", "item", "quantity"]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported sheet images and PDFs in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _mime_type_for(file_path: Path, default: str) -> str:
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return mime_type or default


def _build_extraction(
    config: AppConfig,
) -> tuple[StagingLifecycleManager, DemandExtractor]:
    """Build the OCR staging manager and extractor without the sheet sink."""
    engine = DocumentAIEngine.from_config(config)
    staging = StagingLifecycleManager.from_config(config, engine)
    extractor = DemandExtractor(Catalog.from_config(config.catalog))
    return staging, extractor


def _extract_file(
    file_path: Path,
    store_id: str,
    submission_date: str,
    staging: StagingLifecycleManager,
    extractor: DemandExtractor,
    default_mime_type: str,
) -> list[DemandRow]:
    """Run OCR and extraction on one file; the staged blob is always released."""
    content = file_path.read_bytes()
    mime_type = _mime_type_for(file_path, default_mime_type)
    with staging.session(content, mime_type, store_id, file_path.name) as session:
        document = session.process()
    return extractor.extract(document, store_id, submission_date)


def extract_single(
    file_path: Path, store_id: str, submission_date: str
) -> dict[str, object]:
    """Extract demand rows from one sheet without touching the spreadsheet.

    Args:
        file_path: Path to the sheet image or PDF.
        store_id: Store identifier to stamp on each row.
        submission_date: Date to stamp on each row.

    Returns:
        Dictionary with filename, store, date and rows.
    """
    config = load_config()
    staging, extractor = _build_extraction(config)
    rows = _extract_file(
        file_path,
        store_id,
        submission_date,
        staging,
        extractor,
        config.documentai.default_mime_type,
    )
    return {
        "filename": file_path.name,
        "store_id": store_id,
        "date": submission_date,
        "rows": [row.as_values() for row in rows],
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    submission_date: str,
    store_id: str | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract every sheet in a folder and write all rows to CSV.

    Args:
        input_dir: Directory containing sheet files.
        output_csv: Path for the output CSV file.
        submission_date: Date stamped on every row.
        store_id: Store id for every file; defaults to each file's stem.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, failed and rows counts.
    """
    config = load_config()
    staging, extractor = _build_extraction(config)

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0, "rows": 0}

    logger.info("Found %d documents to process", len(files))

    records: list[dict[str, str]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        file_store = store_id or file_path.stem
        try:
            rows = _extract_file(
                file_path,
                file_store,
                submission_date,
                staging,
                extractor,
                config.documentai.default_mime_type,
            )
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            failed += 1
            continue

        successful += 1
        records.extend(
            {
                "filename": file_path.name,
                "date": row.submission_date,
                "store_id": row.store_id,
                "item": row.item_name,
                "quantity": row.quantity,
            }
            for row in rows
        )

    _write_csv(records, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(files),
        "successful": successful,
        "failed": failed,
        "rows": len(records),
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(records: list[dict[str, str]], output_path: Path) -> None:
    """Write extracted demand rows to a CSV file with a fixed header."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS)
        writer.writeheader()
        writer.writerows(records)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch extraction summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Rows:       {summary['rows']}")
    print(f"Output:     {output_csv}")


def submit_single(
    file_path: Path,
    store_id: str,
    submission_date: str,
    mime_type: str | None = None,
) -> tuple[bool, dict]:
    """Run a full submission for a local file.

    Args:
        file_path: Path to the sheet image or PDF.
        store_id: Store identifier.
        submission_date: Submission date.
        mime_type: Explicit MIME type; guessed from the extension if omitted.

    Returns:
        Tuple of (ok, response payload).
    """
    config = load_config()
    orchestrator = SubmissionOrchestrator.from_config(config)
    result = orchestrator.submit(
        SubmissionRequest(
            store_id=store_id,
            date=submission_date,
            image=base64.b64encode(file_path.read_bytes()).decode("ascii"),
            mime_type=mime_type or mimetypes.guess_type(file_path.name)[0],
            filename=file_path.name,
        )
    )
    ok = not isinstance(result, (SubmissionRejected, SubmissionFailed))
    return ok, result.payload()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Demand Sheet OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser(
        "extract", help="Extract rows from one sheet (no sheet append)"
    )
    single_parser.add_argument("file", type=Path, help="Sheet image or PDF")
    single_parser.add_argument("-s", "--store", required=True, help="Store id")
    single_parser.add_argument("-d", "--date", required=True, help="Submission date")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser(
        "batch", help="Extract rows from a folder of sheets into CSV"
    )
    batch_parser.add_argument("input_dir", type=Path, help="Input directory")
    batch_parser.add_argument("-d", "--date", required=True, help="Submission date")
    batch_parser.add_argument(
        "-s", "--store", help="Store id for all files (default: file name stem)"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("demand_rows.csv"),
        help="Output CSV file (default: demand_rows.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    submit_parser = subparsers.add_parser(
        "submit", help="Extract rows and append them to the Google Sheet"
    )
    submit_parser.add_argument("file", type=Path, help="Sheet image or PDF")
    submit_parser.add_argument("-s", "--store", required=True, help="Store id")
    submit_parser.add_argument("-d", "--date", required=True, help="Submission date")
    submit_parser.add_argument("--mime-type", help="Override the guessed MIME type")

    args = parser.parse_args(argv)

    setup_logging()

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file, args.store, args.date)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir, args.output, args.date, args.store, args.verbose
        )
    elif args.command == "submit":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        ok, payload = submit_single(args.file, args.store, args.date, args.mime_type)
        print(json.dumps(payload, indent=2))
        if not ok:
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
