"""
Document store configuration.
All switches are read from the environment (and an optional .env file) at import time.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Root directory holding one sub-directory per collection
DATA_DIR = os.getenv("DOCSTORE_DATA_DIR", "./data")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Strict mode rejects documents whose shape differs from their reconciled form
SCHEMA_VALIDATION_STRICT = os.getenv("SCHEMA_VALIDATION_STRICT", "true").lower() == "true"

# Reconcile every stored document when a model is constructed
SYNC_ON_LOAD = os.getenv("SYNC_ON_LOAD", "true").lower() == "true"

# Document lifecycle logging
LOG_CREATE_FILE = os.getenv("LOG_CREATE_FILE", "false").lower() == "true"
LOG_DELETE_FILE = os.getenv("LOG_DELETE_FILE", "false").lower() == "true"
LOG_CHANGE_FILE = os.getenv("LOG_CHANGE_FILE", "false").lower() == "true"

API_ENABLED = os.getenv("API_ENABLED", "true").lower() == "true"

# Version string
VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def is_strict_mode():
    """Check if strict schema validation is enabled."""
    return SCHEMA_VALIDATION_STRICT


def get_data_dir() -> Path:
    """Get the data directory as a Path."""
    return Path(DATA_DIR)


def get_collection_path(name: str) -> Path:
    """Get the directory of a named collection."""
    return get_data_dir() / name


def ensure_data_directory():
    """Ensure the data directory exists."""
    get_data_dir().mkdir(parents=True, exist_ok=True)


def get_log_settings():
    """Get default document lifecycle log switches."""
    return {
        "create_file": LOG_CREATE_FILE,
        "delete_file": LOG_DELETE_FILE,
        "change_file": LOG_CHANGE_FILE,
    }


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if not DATA_DIR.strip():
        issues.append("DOCSTORE_DATA_DIR must not be empty")

    data_dir = get_data_dir()
    if data_dir.exists() and not data_dir.is_dir():
        issues.append(f"DOCSTORE_DATA_DIR is not a directory: {data_dir}")

    if LOG_LEVEL not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        issues.append(f"Invalid LOG_LEVEL: {LOG_LEVEL}")

    return issues
