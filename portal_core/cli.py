#!/usr/bin/env python3
"""
CLI for classifying listing URLs and normalising saved payloads.

Usage:
    python -m portal_core.cli sources
    python -m portal_core.cli classify <url>
    python -m portal_core.cli normalise <url> <payload_json> [--source ID] [--summary]
    python -m portal_core.cli fetch <url> [--html FILE] [--summary]

Examples:
    python -m portal_core.cli classify https://www.rightmove.co.uk/properties/123456
    python -m portal_core.cli normalise https://www.zoopla.co.uk/for-sale/details/6481/ payload.json
    curl -s ... | python -m portal_core.cli normalise <url> -
"""

import argparse
import json
import sys
from pathlib import Path

from portal_core.assembler import RecordAssembler
from portal_core.classifier import SourceClassifier
from portal_core.errors import ExtractionError
from portal_core.identity import IdentityDeriver
from portal_core.models import CanonicalProperty
from portal_core.monitoring import LoggingErrorReporter
from portal_core.registry import build_default_registry
from scraper.portal_api import PortalExtractionClient
from utils.config import Config
from utils.formatting import format_count, format_currency, format_flag


EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_BAD_INPUT = 2


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def load_payload(location):
    """Load a JSON payload from a file path, or stdin when location is "-"."""
    if location == "-":
        return json.load(sys.stdin)
    with open(Path(location), "r", encoding="utf-8") as f:
        return json.load(f)


def summarise(record: CanonicalProperty) -> list:
    """Short human-readable lines for a canonical record."""
    tenure = record.tenure.value if record.tenure else "n/a"
    lines = [
        f"ID: {record.identity}",
        f"  Address: {record.address or 'n/a'}",
        f"  Price: {format_currency(record.price)}",
        f"  Type: {record.property_type or 'n/a'}",
        "  Rooms: "
        + ", ".join([
            format_count(record.bedrooms, "bedroom"),
            format_count(record.bathrooms, "bathroom"),
            format_count(record.reception_rooms, "reception room"),
        ]),
        f"  Tenure: {tenure}",
        f"  Council tax band: {record.council_tax_band or 'n/a'}",
        f"  Listed: {format_flag(record.listed_status)}",
        f"  Conservation area: {format_flag(record.conservation_area)}",
    ]
    if record.leasehold_years is not None:
        lines.append(f"  Lease remaining: {record.leasehold_years} years")
    return lines


def cmd_sources(args):
    """List the registered sources."""
    registry = build_default_registry()
    _print_json([descriptor.to_dict() for descriptor in registry])
    return EXIT_OK


def cmd_classify(args):
    """Classify a URL and derive its identity."""
    registry = build_default_registry()
    reporter = LoggingErrorReporter()
    classifier = SourceClassifier(registry, reporter)
    deriver = IdentityDeriver(registry, reporter)

    source_id = classifier.identify_source(args.url)
    identity = deriver.derive_identity(args.url, source_id) if source_id else None

    _print_json({
        "url": args.url,
        "source": source_id,
        "isListingPage": classifier.is_listing_page(args.url),
        "id": identity.canonical if identity else None,
    })
    return EXIT_OK


def cmd_normalise(args):
    """Assemble a canonical record from a saved payload."""
    try:
        payload = load_payload(args.payload)
    except OSError as e:
        print(f"Error: Cannot read payload: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except UnicodeDecodeError as e:
        print(f"Error: Payload is not valid UTF-8: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    assembler = RecordAssembler(build_default_registry())
    record = assembler.assemble(payload, args.url, source_id=args.source)
    return _emit_record(record, args.summary)


def cmd_fetch(args):
    """Fetch a listing through the extraction service and assemble it."""
    html = None
    if args.html:
        try:
            html = Path(args.html).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: Cannot read HTML: {e}", file=sys.stderr)
            return EXIT_BAD_INPUT

    config = Config.load()
    assembler = RecordAssembler(build_default_registry())
    with PortalExtractionClient(
        config.extraction_api_base_url,
        assembler,
        timeout=config.request_timeout,
    ) as client:
        try:
            if html is None:
                record = client.extract_from_url(args.url)
            else:
                record = client.extract_from_html(html, args.url)
        except ExtractionError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_BAD_INPUT

    return _emit_record(record, args.summary)


def _emit_record(record, summary):
    if not isinstance(record, CanonicalProperty):
        _print_json(record.to_dict())
        return EXIT_PARTIAL_FAILURE

    if summary:
        print("\n".join(summarise(record)))
    else:
        _print_json(record.to_dict())
    return EXIT_OK


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Portal listing engine - classify URLs and normalise payloads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit status:
    0  success
    1  payload produced a partial-failure record
    2  payload could not be read, or the extraction request failed
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sources_parser = subparsers.add_parser(
        "sources",
        help="List registered sources",
    )
    sources_parser.set_defaults(func=cmd_sources)

    classify_parser = subparsers.add_parser(
        "classify",
        help="Identify the source, page type and identity of a URL",
    )
    classify_parser.add_argument("url", help="Listing URL")
    classify_parser.set_defaults(func=cmd_classify)

    normalise_parser = subparsers.add_parser(
        "normalise",
        help="Normalise a saved raw payload into a canonical record",
    )
    normalise_parser.add_argument("url", help="Listing URL the payload came from")
    normalise_parser.add_argument("payload", help="Path to JSON payload, or - for stdin")
    normalise_parser.add_argument(
        "--source",
        default=None,
        help="Source id, skipping host-based resolution",
    )
    normalise_parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a short summary instead of JSON",
    )
    normalise_parser.set_defaults(func=cmd_normalise)

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch a listing via the extraction service and normalise it",
    )
    fetch_parser.add_argument("url", help="Listing URL")
    fetch_parser.add_argument(
        "--html",
        default=None,
        help="Saved page HTML to extract from instead of fetching the URL",
    )
    fetch_parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a short summary instead of JSON",
    )
    fetch_parser.set_defaults(func=cmd_fetch)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
