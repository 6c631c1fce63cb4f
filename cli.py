"""
Command-line entry point.

    sqlite-ingest out.sqlite sales.xlsx audit.xaf --prefix q1
    sqlite-ingest --job conversions.yaml
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from dotenv import load_dotenv

load_dotenv()
from config import Config, load_job
from sqlite_ingest import Converter, ConverterError, SupportedFormats
from utils import configure_logging

logger = logging.getLogger("sqlite_ingest.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlite-ingest",
        description="Convert csv/txt, xls/xlsx and xaf files into SQLite tables."
    )
    parser.add_argument("output", nargs="?", help="SQLite file to create or extend")
    parser.add_argument("sources", nargs="*", help="Source files, converted in order")
    parser.add_argument("--job", help="YAML job file listing output and sources")
    parser.add_argument(
        "--format",
        choices=[ext.lstrip('.') for ext in SupportedFormats.get_supported_extensions()],
        help="Treat every source as this format instead of using its extension"
    )
    parser.add_argument("--prefix", default=Config.TABLE_PREFIX, help="Table-name prefix")
    parser.add_argument("--key-row", type=int, default=Config.KEY_ROW,
                        help="1-based row holding column names (spreadsheets)")
    parser.add_argument("--destroy-on-exit", action="store_true",
                        help="Delete the output database when done")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL, help="Logging level")
    return parser


def _job_from_args(args: argparse.Namespace, parser: argparse.ArgumentParser) -> dict:
    if args.job:
        return load_job(args.job)
    if not args.output or not args.sources:
        parser.error("an output file and at least one source are required (or use --job)")
    return {
        "output": args.output,
        "destroy_on_exit": args.destroy_on_exit,
        "sources": [
            {"path": path, "format": args.format, "prefix": args.prefix, "key_row": args.key_row}
            for path in args.sources
        ]
    }


def run(job: dict) -> List[dict]:
    """Convert every source of a job into its output database."""
    summaries = []
    with Converter(job["output"], destroy_on_exit=job["destroy_on_exit"]) as converter:
        for source in job["sources"]:
            converter.change_source(
                source["path"],
                file_format=source["format"],
                table_prefix=source["prefix"],
                key_row=source["key_row"]
            )
            tables = converter.convert()
            summaries.append({"source": converter.current_source_path(), "tables": tables})
    return summaries


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        job = _job_from_args(args, parser)
        summaries = run(job)
    except ConverterError as e:
        logger.error("%s", e)
        return 1

    for summary in summaries:
        for table, rows in summary["tables"].items():
            print(f"{summary['source']}: {table} ({rows} rows)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
