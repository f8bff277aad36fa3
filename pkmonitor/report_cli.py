from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .export import safe_filename, samples_to_csv
from .history_db import HistoryDB
from .history_store import HistoryStore
from .range_filter import filter_by_position, position_span
from .report import build_report_data, build_report_pdf


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a PK monitor PDF report from the stored session history"
    )
    parser.add_argument("session_id", nargs="?", default=None, help="Stored session id")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="History database (default: storage.history_db_path from the config)",
    )
    parser.add_argument("--list", action="store_true", help="List stored sessions and exit")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output PDF path (default: Report_<report id>.pdf)",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Optional path to also write the selected samples as CSV",
    )
    parser.add_argument("--low", type=float, default=None, help="Lower PK bound (km)")
    parser.add_argument("--high", type=float, default=None, help="Upper PK bound (km)")
    parser.add_argument(
        "--lang", default=None, help="Report language, en or fr (default: report.language)"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    db_path = args.db or config.storage.history_db_path
    if not db_path.exists():
        print(f"Error: history database not found: {db_path}", file=sys.stderr)
        return 1

    db = HistoryDB(db_path)
    try:
        history = HistoryStore(db, max_entries=config.storage.max_history_entries)
        history.load()
        if args.list:
            for record in history.records:
                summary = record.summary()
                print(
                    f"{summary['id']}\t{summary['date']}\t{summary['track']}\t"
                    f"{summary['sample_count']} samples\t{summary['exceedances']} exceedances"
                )
            return 0
        if args.session_id is None:
            print("Error: a session id is required (use --list to see them)", file=sys.stderr)
            return 1
        record = history.get(args.session_id)
        if record is None:
            print(f"Error: session not found: {args.session_id}", file=sys.stderr)
            return 1

        data = build_report_data(record, args.low, args.high, args.lang or config.report.language)
        out_pdf = args.output or Path(f"Report_{safe_filename(data.report_id)}.pdf")
        out_pdf.parent.mkdir(parents=True, exist_ok=True)
        try:
            out_pdf.write_bytes(build_report_pdf(data))
        except Exception as exc:
            print(f"Error: PDF generation failed: {exc}", file=sys.stderr)
            return 1
        print(f"wrote report: {out_pdf}")

        if args.csv is not None:
            span = position_span(record.samples) or (0.0, 0.0)
            low = span[0] if args.low is None else args.low
            high = span[1] if args.high is None else args.high
            args.csv.parent.mkdir(parents=True, exist_ok=True)
            args.csv.write_text(
                samples_to_csv(filter_by_position(record.samples, low, high)), encoding="utf-8"
            )
            print(f"wrote samples: {args.csv}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
