#!/usr/bin/env python3
"""Seed glossary terms and prompt templates from a JSON file.

The file holds two optional lists::

    {
      "glossary": [
        {"source_term": "Unlimited Data", "translations": {"my": "Data Tanpa Had", "zh": "无限数据"},
         "category": "product"},
        {"source_term": "Yes", "do_not_translate": true, "category": "brand"}
      ],
      "templates": [
        {"name": "Banner", "prompt_text": "Short, impactful, action-oriented.", "is_default": true}
      ]
    }

Usage:
    cd backend
    python scripts/seed_glossary.py seed.json
    python scripts/seed_glossary.py seed.json --version v2.0
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Make `app` importable when run from the backend directory
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from app.config import settings  # noqa: E402
from app.core.storage import GlossarySource, TemplateSource  # noqa: E402
from app.models.database.base import init_db  # noqa: E402


async def seed(path: Path, version: str) -> int:
    """Load the seed file. Returns the number of failures."""
    data = json.loads(path.read_text(encoding="utf-8"))
    await init_db()

    terms = data.get("glossary", [])
    for term in terms:
        term.setdefault("version", version)
    result = await GlossarySource().bulk_import(terms)
    print(f"Glossary: {result['imported']} imported, {len(result['errors'])} skipped")
    for error in result["errors"]:
        print(f"  - {error['term']}: {error['error']}")

    failures = len(result["errors"])
    templates = TemplateSource()
    for template in data.get("templates", []):
        try:
            await templates.create(
                name=template["name"],
                prompt_text=template["prompt_text"],
                description=template.get("description"),
                is_default=bool(template.get("is_default", False)),
            )
            print(f"Template '{template['name']}' created")
        except ValueError as e:
            print(f"Template '{template['name']}' skipped: {e}")
            failures += 1

    return failures


def main():
    parser = argparse.ArgumentParser(description="Seed glossary terms and prompt templates")
    parser.add_argument("file", type=Path, help="JSON seed file")
    parser.add_argument(
        "--version",
        default=settings.default_glossary_version,
        help="Glossary version for terms that do not name one (default: %(default)s)",
    )
    args = parser.parse_args()

    if not args.file.exists():
        print(f"Seed file not found: {args.file}")
        sys.exit(1)

    print(f"Seeding database: {settings.database_url}")
    failures = asyncio.run(seed(args.file, args.version))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
