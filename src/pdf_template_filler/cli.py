# SPDX-License-Identifier: Apache-2.0
"""
PDF Template Filler - CLI Tool

Flows a title and body text onto a PDF template, cloning the template's
first page as often as the text needs.

Usage:
    fill-template <template.pdf> [options]

Examples:
    fill-template letterhead.pdf --source article.docx
    fill-template letterhead.pdf --title "Notes" --body-file notes.txt
    fill-template letterhead.pdf --source report.pdf -o ./out.pdf --protect
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn

from dotenv import load_dotenv

from pdf_template_filler.config import AppConfig, load_config
from pdf_template_filler.core.models import IngestedDocument
from pdf_template_filler.core.template import Template
from pdf_template_filler.errors import GenerationError
from pdf_template_filler.ingest import TextIngestor
from pdf_template_filler.pipeline.generator import (
    DocumentGenerator,
    GenerateOptions,
    GenerationResult,
    suggested_filename,
)
from pdf_template_filler.pipeline.progress import log_progress
from pdf_template_filler.protection import ProtectionClient

logger = logging.getLogger(__name__)

# Default output directory
DEFAULT_OUTPUT_DIR = "./output/"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="fill-template",
        description="Flow text onto a PDF template with automatic pagination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s tpl.pdf --source article.docx            # Title and body from a document
  %(prog)s tpl.pdf --title "Notes" --body-file b.txt  # Explicit title and body
  %(prog)s tpl.pdf --source a.pdf --plan            # Also write the render plan
  %(prog)s tpl.pdf --source a.txt --protect         # Send through protection service
  %(prog)s tpl.pdf --source a.txt --body-zone ""    # Ignore the body field, use margins

Environment Variables:
  PROTECTION_SERVICE_URL   Protection service base URL (required for --protect)
  PROTECTION_API_TOKEN     Optional bearer token for the protection service
""",
    )

    parser.add_argument(
        "template",
        type=Path,
        help="Path to the PDF template",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file path (default: {DEFAULT_OUTPUT_DIR}<title>.pdf)",
    )

    content_group = parser.add_argument_group("Content options")
    content_group.add_argument(
        "-s",
        "--source",
        type=Path,
        help="Source document (.txt, .docx, .pdf) to take title and body from",
    )
    content_group.add_argument(
        "--title",
        help="Document title (overrides the title found in --source)",
    )
    body_group = content_group.add_mutually_exclusive_group()
    body_group.add_argument(
        "--body",
        help="Body text",
    )
    body_group.add_argument(
        "--body-file",
        type=Path,
        help="UTF-8 text file holding the body",
    )

    layout_group = parser.add_argument_group("Layout options")
    layout_group.add_argument(
        "-c",
        "--config",
        type=Path,
        help="JSON configuration file (layout, margins, ingest sections)",
    )
    layout_group.add_argument(
        "--template-id",
        help="Template id for margin profile lookup (default: template file stem)",
    )
    layout_group.add_argument(
        "--max-pages",
        type=int,
        help="Maximum number of output pages",
    )
    layout_group.add_argument(
        "--title-zone",
        metavar="FIELD",
        help="Template field to place the title in (default: field named *title*)",
    )
    layout_group.add_argument(
        "--body-zone",
        metavar="FIELD",
        help='Template field to flow the body in; "" uses the generic margin area',
    )

    output_group = parser.add_argument_group("Output options")
    output_group.add_argument(
        "--plan",
        action="store_true",
        help="Write the render plan as JSON next to the output PDF",
    )
    output_group.add_argument(
        "--protect",
        action="store_true",
        help="Send the finished PDF through the rights-protection service",
    )
    output_group.add_argument(
        "--protect-url",
        help="Protection service URL (or set PROTECTION_SERVICE_URL)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def resolve_content(args: argparse.Namespace, config: AppConfig) -> IngestedDocument:
    """Determine title and body from the command line arguments.

    Raises:
        ValueError: If neither a source nor a body was given.
    """
    if args.source is not None:
        document = TextIngestor(config.ingest).ingest_path(args.source)
    elif args.body is not None or args.body_file is not None:
        document = IngestedDocument(title=config.layout.default_title, body="")
    else:
        raise ValueError("Provide --source, --body or --body-file")

    if args.body is not None:
        document.body = args.body
    elif args.body_file is not None:
        document.body = args.body_file.read_text(encoding="utf-8")
    if args.title:
        document.title = args.title
    return document


def default_output_path(title: str) -> Path:
    """Output path derived from the document title."""
    return Path(DEFAULT_OUTPUT_DIR) / suggested_filename(title)


async def generate_document(
    args: argparse.Namespace,
    generator: DocumentGenerator,
    document: IngestedDocument,
    template: Template,
) -> GenerationResult:
    """Generate, optionally through the protection service."""
    options = GenerateOptions(
        template_id=args.template_id,
        max_pages=args.max_pages,
        title_zone=args.title_zone,
        body_zone=args.body_zone,
    )
    if not args.protect:
        return generator.generate(document.title, document.body, template, options)

    url = args.protect_url or os.environ.get("PROTECTION_SERVICE_URL", "")
    if not url:
        raise ValueError(
            "Protection service URL is required for --protect.\n"
            "  Set --protect-url option or PROTECTION_SERVICE_URL environment variable."
        )
    token = os.environ.get("PROTECTION_API_TOKEN") or None
    async with ProtectionClient(url, api_token=token) as client:
        return await generator.generate_protected(
            document.title, document.body, template, client, options
        )


async def run(args: argparse.Namespace) -> int:
    """Execute the generation pipeline.

    Args:
        args: Command line arguments.

    Returns:
        Exit code (0: success, 1: failure).
    """
    template_path: Path = args.template

    if not template_path.exists():
        print(f"Error: File not found: {template_path}", file=sys.stderr)
        return 1

    if template_path.suffix.lower() != ".pdf":
        print(f"Error: Not a PDF file: {template_path}", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
        template = Template.from_path(template_path, template_id=args.template_id)
        document = resolve_content(args, config)
        generator = DocumentGenerator(
            config, progress_callback=log_progress if args.verbose else None
        )
        result = await generate_document(args, generator, document, template)
    except (GenerationError, ValueError, OSError, ImportError) as e:
        print(f"Error: Generation failed: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    output_path: Path = args.output or default_output_path(document.title)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.pdf_bytes)

    print(f"Complete: {output_path}")
    print(f"  Title: {document.title}")
    print(f"  Pages: {result.page_count}")
    print(f"  Layout: {'zones' if result.plan.zone_layout else 'margins'}")
    if result.protected:
        print("  Protected: yes")

    if args.plan:
        plan_path = output_path.with_suffix(".json")
        plan_path.write_text(result.plan.to_json(), encoding="utf-8")
        print(f"  Plan: {plan_path}")

    return 0


def main() -> NoReturn:
    """Main entry point."""
    load_dotenv()
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
