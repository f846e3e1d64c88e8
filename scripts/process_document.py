#!/usr/bin/env python3
"""Run the extraction and chunking pipeline on a local file and print the JSON result."""

from __future__ import annotations

import argparse
import json
import mimetypes
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
src_str = str(SRC_ROOT)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from hrdoc.ingest import IngestPipeline, get_chunking_config  # noqa: E402
from hrdoc.logging_config import configure_logging  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="Document to process.")
    parser.add_argument("--media-type", help="Declared media type; guessed from the suffix when omitted.")
    parser.add_argument("--document-id", default=None, help="Document identifier (random UUID by default).")
    parser.add_argument("--organization-id", default="local", help="Organisation identifier.")
    parser.add_argument(
        "--language",
        choices=["ar", "en", "mixed"],
        default=None,
        help="Force the chunking preset instead of using the detected language.",
    )
    parser.add_argument(
        "--tune-for-document-type",
        action="store_true",
        help="Adjust chunk sizes for contracts, policies, handbooks and forms.",
    )
    parser.add_argument("--text-only", action="store_true", help="Print only the extracted text.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    load_dotenv()
    configure_logging()

    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 2

    media_type = args.media_type or mimetypes.guess_type(args.path.name)[0]
    pipeline = IngestPipeline(tune_for_document_type=args.tune_for_document_type)
    config = get_chunking_config(args.language) if args.language else None
    result = pipeline.process(
        args.path.read_bytes(),
        media_type,
        document_id=args.document_id or str(uuid.uuid4()),
        organization_id=args.organization_id,
        document_name=args.path.name,
        config=config,
    )

    if args.text_only:
        print(result.extracted.text)
    else:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if result.chunks else 1


if __name__ == "__main__":
    raise SystemExit(main())
