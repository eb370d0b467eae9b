"""
Command-line interface for the question extractor.

Usage:
    python -m question_extractor check FILE.docx [--output OUT.docx] [--json]
    python -m question_extractor classify FILE.docx
"""

import argparse
import asyncio
import json
import os
import sys
from contextlib import AsyncExitStack

import httpx

from question_extractor.config import get_settings
from question_extractor.services.document_accessor import DocxDocumentAccessor
from question_extractor.services.format_checker import FormatChecker
from question_extractor.services.html_enricher import HtmlEnricher
from question_extractor.services.key_value_store import get_key_value_store
from question_extractor.services.paragraph_classifier import classify_paragraph


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="question-extractor",
        description="Question Extractor CLI - Check and extract questions from Word documents"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check",
        help="Validate a document, recolor its paragraphs and extract questions"
    )
    check_parser.add_argument("file", type=str, help="Path to the .docx document")
    check_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Where to write the recolored document (default: overwrite FILE)"
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the check result and extracted questions as JSON"
    )
    check_parser.add_argument(
        "--no-enrich",
        action="store_true",
        help="Do not inline remote images in the extracted HTML"
    )

    classify_parser = subparsers.add_parser(
        "classify",
        help="Print how each paragraph of a document is classified"
    )
    classify_parser.add_argument("file", type=str, help="Path to the .docx document")

    return parser


def _check_file(path: str) -> bool:
    if not os.path.exists(path):
        print(f"Error: File not found: {path}")
        return False
    if not path.lower().endswith(".docx"):
        print(f"Error: Not a .docx file: {path}")
        return False
    return True


async def check_command(args: argparse.Namespace) -> int:
    """
    Execute the check command.

    Returns:
        int: Exit code (0 when the document is clean, 1 otherwise)
    """
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Configuration error: {e}")
        return 1

    if not _check_file(args.file):
        return 1

    document = DocxDocumentAccessor(args.file, output_path=args.output)
    store = get_key_value_store(settings)

    async with AsyncExitStack() as stack:
        enricher = None
        if settings.enable_image_enrichment and not args.no_enrich:
            client = await stack.enter_async_context(
                httpx.AsyncClient(timeout=settings.image_fetch_timeout_seconds, follow_redirects=True)
            )
            enricher = HtmlEnricher(client, settings.max_inline_image_bytes)

        checker = FormatChecker(document, store, enricher)
        result = await checker.run_check_and_extract()

    if args.json:
        output = result.model_dump()
        output["questions"] = [q.to_wire() for q in checker.questions]
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0 if result.success else 1

    if result.success:
        print(f"Document is valid: extracted {result.question_count} question(s)")
        for q in checker.questions:
            answer = ", ".join(q.answer) or "-"
            print(f"  Q{q.question_number}: {len(q.options)} option(s), answer {answer}")
        return 0

    print(f"Check failed: {result.message}")
    if result.invalid_paragraphs:
        print(f"Invalid paragraphs: {', '.join(str(i) for i in result.invalid_paragraphs)}")
        print(f"Recolored document written to {args.output or args.file}")
    return 1


async def classify_command(args: argparse.Namespace) -> int:
    """Print one line per paragraph: index, role, and text."""
    if not _check_file(args.file):
        return 1

    try:
        paragraphs = await DocxDocumentAccessor(args.file).get_paragraphs()
    except Exception as e:
        print(f"Error: {e}")
        return 1

    for paragraph in paragraphs:
        role = classify_paragraph(paragraph.trimmed)
        print(f"{paragraph.index:>4}  {role.kind:<16} {paragraph.trimmed[:60]}")
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "check":
        return asyncio.run(check_command(args))
    elif args.command == "classify":
        return asyncio.run(classify_command(args))
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
