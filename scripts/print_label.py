#!/usr/bin/env python3
"""
Render (and optionally print) a lot label as EZPL.

Usage:
    python3 scripts/print_label.py --request label.json
    python3 scripts/print_label.py --lot-id 42 --db-url sqlite:///trace.db
    python3 scripts/print_label.py --lot-id 42 --print --device godex_raw --copies 3

The request file is a JSON object with the label fields (``product_name``,
``ingredients``, ``allergens``, ``lot_code``, ``expiry_date``, ...); the
legacy form names (``nombreLb``, ``loteCodigo``, ...) are accepted too.
Without ``--print`` the EZPL text goes to stdout.

Exit status is 0 on success and 1 on any configuration, input, database
or printing error.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DEFAULT_DB_URL = "sqlite:///trace.db"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="print_label",
        description="Render a lot label as EZPL and optionally send it to a printer queue.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--request", type=Path, help="JSON file holding a label request")
    source.add_argument("--lot-id", type=int, help="build the request from a stored lot")

    parser.add_argument(
        "--db-url", default=DEFAULT_DB_URL,
        help=f"lot store URL, used with --lot-id (default: {DEFAULT_DB_URL})",
    )
    parser.add_argument("--config", type=Path, help="operator YAML merged over the label defaults")
    parser.add_argument("--copies", type=int, default=1, help="number of copies (default: 1)")
    parser.add_argument(
        "--print", dest="send", action="store_true",
        help="send to the printer queue instead of writing to stdout",
    )
    parser.add_argument("--device", help="printer queue (default: configured printer_device)")
    parser.add_argument("--verbose", action="store_true", help="JSON logs on stderr")
    return parser


def _fail(message: str) -> int:
    print(f"  ERROR: {message}", file=sys.stderr)
    return 1


def _read_request(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from sqlalchemy.exc import SQLAlchemyError

    from trace_config import get_active_config
    from trace_kernel.exceptions import TraceKernelError
    from trace_kernel.logging_config import configure_logging
    from trace_labels.printer import LprPrinterSink
    from trace_labels.service import LabelService

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        logging.disable(logging.CRITICAL)

    try:
        settings = get_active_config(args.config)
    except (OSError, KeyError, ValueError) as exc:
        return _fail(f"Invalid configuration: {exc}")

    session = None
    try:
        if args.request is not None:
            try:
                request = _read_request(args.request)
            except (OSError, ValueError) as exc:
                return _fail(f"Cannot read request: {exc}")
            service = LabelService(settings=settings)
        else:
            from trace_kernel.db.engine import get_session, init_engine_from_url

            try:
                init_engine_from_url(args.db_url)
            except (SQLAlchemyError, ImportError, ValueError) as exc:
                return _fail(f"Cannot open lot store: {exc}")
            session = get_session()
            service = LabelService(session=session, settings=settings)
            request = service.request_for_lot(args.lot_id)

        if args.send:
            device = args.device or settings.printer_device
            service.print_label(request, LprPrinterSink(), device=device, copies=args.copies)
            print(f"  Sent {args.copies} label(s) to {device}")
        else:
            sys.stdout.write(service.render(request, copies=args.copies))
        return 0
    except TraceKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        return _fail(f"Lot store error: {exc}")
    finally:
        if session is not None:
            session.close()


if __name__ == "__main__":
    sys.exit(main())
