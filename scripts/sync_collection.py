#!/usr/bin/env python3
"""
Command-line utility that brings every document of a collection up to date with its schema.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from docstore.core.diff import ChangeRecord
from docstore.core.model import Model
from docstore.core.schema import load_schema_file


def format_changes(doc_id: str, changes: List[ChangeRecord]) -> str:
    """Format the change records of one document for display."""
    if not changes:
        return f"{doc_id}: unknown fields removed"
    lines = []
    for change in changes:
        lines.append(f"{doc_id}{change.path} changed from {change.old_value} to {change.new_value}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile stored documents against a collection schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s schema.json ./data/users             # Rewrite non-conforming documents
  %(prog)s schema.json ./data/users --dry-run   # Only report what would change
  %(prog)s schema.json ./data/users --json      # Output results as JSON
        """
    )

    parser.add_argument("schema", help="Path to the schema JSON file")
    parser.add_argument("collection", help="Collection directory holding <id>.json documents")

    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Report changes without writing documents"
    )

    parser.add_argument(
        "--json", "-j",
        action="store_true",
        help="Output results as JSON instead of human-readable text"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    return parser


def main(argv: List[str] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        schema = load_schema_file(args.schema)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Invalid schema {args.schema}: {e}", file=sys.stderr)
        return 2

    if not Path(args.collection).is_dir():
        print(f"Collection directory not found: {args.collection}", file=sys.stderr)
        return 2

    model = Model(args.collection, schema, sync_on_init=False)
    results: Dict[str, List[ChangeRecord]] = model.sync_all(dry_run=args.dry_run)

    if args.json:
        json_output = {
            "collection": args.collection,
            "dry_run": args.dry_run,
            "documents_checked": model.count(),
            "documents_changed": len(results),
            "changes": {
                doc_id: [change.to_dict() for change in changes]
                for doc_id, changes in results.items()
            }
        }
        print(json.dumps(json_output, indent=2))
    elif not args.quiet:
        for doc_id, changes in results.items():
            print(format_changes(doc_id, changes))
        verb = "would change" if args.dry_run else "changed"
        print(f"\n{len(results)} of {model.count()} documents {verb}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
