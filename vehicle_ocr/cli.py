"""Command-line interface for reading registration certificate photos.

Provides subcommands for a single photo (JSON output), a folder of photos
(CSV export), and dumping the enhanced image that Tesseract sees.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from vehicle_ocr.exceptions import VehicleOCRError
from vehicle_ocr.extraction.rules import FIELD_NAMES
from vehicle_ocr.ocr.registration_processor import RegistrationProcessor
from vehicle_ocr.preprocessing.pipeline import ImagePreprocessor
from vehicle_ocr.utils.config import load_config
from vehicle_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg")
_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "confidence",
    "heuristic_fields",
    "error",
]
_CSV_COLUMNS = _META_COLUMNS + list(FIELD_NAMES)


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _print_progress(percent: int) -> None:
    print(f"\rRecognizing text: {percent:3d}%", end="", file=sys.stderr, flush=True)
    if percent >= 100:
        print(file=sys.stderr)


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config_path: Path | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Read every certificate photo in a folder and export the fields to CSV.

    A photo that cannot be read is recorded as a failed row; the batch
    continues with the next file.

    Args:
        input_dir: Directory containing JPEG/PNG photos.
        output_csv: Path for the output CSV file.
        config_path: Optional YAML configuration file.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    processor = RegistrationProcessor(load_config(config_path))

    files = _find_images(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d images to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = processor.process(file_path.read_bytes())
        except (VehicleOCRError, OSError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            failed += 1
            continue

        row: dict[str, object] = {
            "filename": file_path.name,
            "status": "success",
            "processing_time_s": round(time.time() - start_time, 2),
            "confidence": round(result.confidence, 1),
            "heuristic_fields": ";".join(result.heuristic_fields),
            "error": None,
        }
        row.update(result.extracted_fields)
        rows.append(row)
        successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write one row per photo with a fixed column order."""
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path,
    config_path: Path | None = None,
    show_progress: bool = False,
) -> dict[str, object]:
    """Read one certificate photo and return the camelCase result mapping.

    Args:
        file_path: Path to the JPEG/PNG photo.
        config_path: Optional YAML configuration file.
        show_progress: Whether to print recognition progress to stderr.

    Returns:
        Result mapping with ``filename`` added.
    """
    processor = RegistrationProcessor(load_config(config_path))
    result = processor.process(
        file_path.read_bytes(),
        on_progress=_print_progress if show_progress else None,
    )
    return {"filename": file_path.name, **result.to_dict()}


def preprocess_single(
    file_path: Path, output_path: Path, config_path: Path | None = None
) -> None:
    """Write the enhanced grayscale image for one photo as PNG."""
    preprocessor = ImagePreprocessor(load_config(config_path).preprocessing)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(preprocessor.process_to_png(file_path.read_bytes()))


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Vehicle Registration Certificate OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser("extract", help="Read a single photo")
    single_parser.add_argument("file", type=Path, help="Certificate photo (JPEG/PNG)")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    single_parser.add_argument(
        "-p", "--progress", action="store_true", help="Show recognition progress"
    )

    batch_parser = subparsers.add_parser("batch", help="Read a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with photos")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    prep_parser = subparsers.add_parser(
        "preprocess", help="Write the enhanced image used for recognition"
    )
    prep_parser.add_argument("file", type=Path, help="Certificate photo (JPEG/PNG)")
    prep_parser.add_argument(
        "-o", "--output", type=Path, required=True, help="Output PNG file"
    )

    args = parser.parse_args(argv)

    setup_logging(load_config(args.config).log_level)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, args.config, args.progress)
        except VehicleOCRError as exc:
            logger.error("Extraction failed: %s", exc)
            print(f"Error: {exc.user_message}", file=sys.stderr)
            sys.exit(2)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.config, args.verbose)
    elif args.command == "preprocess":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            preprocess_single(args.file, args.output, args.config)
        except VehicleOCRError as exc:
            print(f"Error: {exc.user_message}", file=sys.stderr)
            sys.exit(2)
        print(f"Enhanced image written to {args.output}")
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
