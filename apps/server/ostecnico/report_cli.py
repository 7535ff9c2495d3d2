from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_config
from .domain_models import ServiceOrderReport
from .errors import OstecnicoError
from .report.pdf_builder import generate_report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an OSTecnico service-order PDF from a JSON record"
    )
    parser.add_argument("input", type=Path, help="Joined service order record (.json)")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the PDF (default: report.output_dir from config)",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        return 1
    logging.basicConfig(level=config.logging.level, format="%(levelname)s %(name)s: %(message)s")

    try:
        record = json.loads(args.input.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"Error: input file contains invalid JSON: {exc}", file=sys.stderr)
        return 1
    if not isinstance(record, dict):
        print("Error: input file must contain a JSON object", file=sys.stderr)
        return 1

    order = ServiceOrderReport.from_record(record)
    try:
        out_pdf = generate_report(order, output_dir=args.output_dir, config=config.report)
    except OstecnicoError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"wrote report: {out_pdf}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
