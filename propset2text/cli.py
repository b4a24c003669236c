from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

import propset2text
from propset2text.extractors.data_types import PropertiesContent
from propset2text.extractors.serialization import serialize_extraction

_SECTIONS = ("all", "summary", "document")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="propset2text",
        description=(
            "Print the SummaryInformation and DocumentSummaryInformation "
            "properties of an OLE2 compound document (or JSON with --json)."
        ),
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Path to the compound document (.doc, .xls, .ppt, .vsd, ...).",
    )
    parser.add_argument(
        "--section",
        choices=_SECTIONS,
        default="all",
        help="Which property sets to print (default: all).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit structured JSON instead of NAME = value lines.",
    )
    parser.add_argument(
        "--binary",
        action="store_true",
        help="With --json, include the thumbnail image as a base64 blob.",
    )
    return parser


def _render_text(content: PropertiesContent, section: str) -> str:
    if section == "summary":
        return content.get_summary_information_text()
    if section == "document":
        return content.get_document_summary_information_text()
    return content.get_full_text()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"propset2text: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    try:
        if args.binary and not args.json:
            raise ValueError("--binary requires --json")
        results = list(propset2text.read_file(args.path))
        if not results:
            raise RuntimeError(f"No extraction results for {args.path}")
        content = results[0]
        if args.json:
            payload = serialize_extraction(content, include_binary=bool(args.binary))
            json.dump(payload, sys.stdout)
            sys.stdout.write("\n")
        else:
            sys.stdout.write(_render_text(content, args.section))
        return 0
    except Exception as exc:
        print(f"propset2text: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
