#!/usr/bin/env python3
"""
Serve collections over HTTP.

Each collection is given as NAME=SCHEMA_FILE and stored under DOCSTORE_DATA_DIR/NAME.
"""

import argparse
import sys
from pathlib import Path
from typing import List

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from docstore.api.main import app, register_model
from docstore.core.config import ensure_data_directory, get_collection_path, validate_config
from docstore.core.model import Model
from docstore.core.schema import load_schema_file


def register_collections(entries: List[str]) -> List[str]:
    """Register every NAME=SCHEMA_FILE entry with the API; returns the names."""
    names = []
    for entry in entries:
        name, sep, schema_file = entry.partition("=")
        if not sep or not name or not schema_file:
            raise ValueError(f"Invalid collection entry {entry!r}, expected NAME=SCHEMA_FILE")
        model = Model(get_collection_path(name), load_schema_file(schema_file), name=name)
        register_model(name, model)
        names.append(name)
    return names


def main(argv: List[str] = None) -> int:
    parser = argparse.ArgumentParser(description="Serve document collections over HTTP")
    parser.add_argument(
        "collections",
        nargs="+",
        metavar="NAME=SCHEMA_FILE",
        help="Collection name and the schema JSON file describing it"
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    args = parser.parse_args(argv)

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"Config issue: {issue}", file=sys.stderr)
        return 2

    ensure_data_directory()
    try:
        names = register_collections(args.collections)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    print(f"Serving collections: {', '.join(names)}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
