#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Template filling sample script

Shows the basic use of pdf-template-filler. Change the settings below to
try different sources, templates and margin profiles.

Usage:
    cd examples
    python fill_template.py

Environment variables (read from a .env file):
    PROTECTION_SERVICE_URL: Protection service URL (needed when PROTECT is True)
    PROTECTION_API_TOKEN: Optional bearer token for the protection service
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to the path (for development)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

# Load .env file from project root
load_dotenv(PROJECT_ROOT / ".env")


# =============================================================================
# Settings - change these to customize the run
# =============================================================================

# Template with optional "Text Title" / "Text Body" form fields
TEMPLATE_PDF = Path(__file__).parent / "templates" / "letterhead.pdf"

# Source document: .txt, .docx or .pdf
SOURCE_DOCUMENT = Path(__file__).parent / "sources" / "article.docx"

# Margin profiles per template id (see margins.json)
CONFIG_FILE = Path(__file__).parent / "margins.json"

# Send the finished PDF through the protection service
PROTECT = False

OUTPUT_DIR = Path(__file__).parent / "outputs"

# =============================================================================
# Main (usually no changes needed)
# =============================================================================


async def main() -> None:
    """Main process."""
    from pdf_template_filler import DocumentGenerator, Template, TextIngestor, load_config
    from pdf_template_filler.pipeline import suggested_filename
    from pdf_template_filler.protection import ProtectionClient

    for path in (TEMPLATE_PDF, SOURCE_DOCUMENT):
        if not path.exists():
            print(f"Error: File not found: {path}")
            sys.exit(1)

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    config = load_config(CONFIG_FILE if CONFIG_FILE.exists() else None)

    print("=" * 60)
    print("Template Filling Example")
    print("=" * 60)
    print(f"Template:    {TEMPLATE_PDF}")
    print(f"Source:      {SOURCE_DOCUMENT}")
    print(f"Protect:     {PROTECT}")
    print("=" * 60)

    document = TextIngestor(config.ingest).ingest_path(SOURCE_DOCUMENT)
    print(f"\nTitle: {document.title}")
    print(f"Body:  {len(document.body)} characters")

    template = Template.from_path(TEMPLATE_PDF)
    generator = DocumentGenerator(config)

    if PROTECT:
        url = os.environ.get("PROTECTION_SERVICE_URL")
        if not url:
            print("Error: PROTECTION_SERVICE_URL environment variable is not set")
            sys.exit(1)
        async with ProtectionClient(url, os.environ.get("PROTECTION_API_TOKEN")) as client:
            result = await generator.generate_protected(
                document.title, document.body, template, client
            )
    else:
        result = generator.generate(document.title, document.body, template)

    output_pdf = OUTPUT_DIR / suggested_filename(document.title)
    output_pdf.write_bytes(result.pdf_bytes)

    print("\n" + "=" * 60)
    print("Generation Complete!")
    print("=" * 60)
    print(f"Pages:        {result.page_count} ({result.plan.clone_count} cloned)")
    print(f"Zone layout:  {result.plan.zone_layout}")
    print(f"Output file:  {output_pdf}")
    print(f"File size:    {output_pdf.stat().st_size / 1024:.1f} KB")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
