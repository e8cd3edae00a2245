"""Configuration utilities for infrastructure layer."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Variables that may be referenced from MONGODB_URI as ${NAME}
CREDENTIAL_PLACEHOLDERS = ("MONGODB_USER", "MONGODB_PASSWORD")


def load_environment(env_file: Optional[Path] = None) -> bool:
    """
    Load variables from a .env file into the process environment.

    Existing environment variables are never overridden.

    Args:
        env_file: Explicit .env path (defaults to dotenv's discovery)

    Returns:
        True if a file was found and loaded
    """
    if env_file is not None:
        return load_dotenv(env_file, override=False)
    return load_dotenv(override=False)


def get_blob_store_backend() -> str:
    """
    Get blob store backend name.

    Returns:
        "inmemory" (default) or "mongodb", lower-cased
    """
    return os.getenv("BLOB_STORE_BACKEND", "inmemory").lower()


def get_mongodb_uri() -> Optional[str]:
    """Connection string from MONGODB_URI, or None when unset.

    Credentials may live in their own variables and be referenced from the
    URI as ${MONGODB_USER} and ${MONGODB_PASSWORD}; unset credentials expand
    to empty strings.
    """
    template = os.getenv("MONGODB_URI")
    if not template:
        return None
    for var in CREDENTIAL_PLACEHOLDERS:
        template = template.replace(f"${{{var}}}", os.getenv(var, ""))
    return template


def get_mongodb_database() -> str:
    """
    Get MongoDB database name.

    Returns:
        Database name from MONGODB_DATABASE env var, defaults to "mealdrafts"
    """
    return os.getenv("MONGODB_DATABASE", "mealdrafts")


def get_mongodb_blob_collection() -> str:
    """Collection holding draft blobs (MONGODB_BLOB_COLLECTION, default "draft_blobs")."""
    return os.getenv("MONGODB_BLOB_COLLECTION", "draft_blobs")


def get_draft_id_max_attempts() -> int:
    """
    Get bounded retry count for draft id generation.

    Returns:
        DRAFT_ID_MAX_ATTEMPTS as int (default 5, minimum 1)
    """
    try:
        value = int(os.getenv("DRAFT_ID_MAX_ATTEMPTS", "5"))
    except ValueError:
        value = 5
    return max(1, value)


def get_auto_save_interval_seconds() -> float:
    """
    Get auto-save interval.

    Returns:
        AUTO_SAVE_INTERVAL_SECONDS as float (default 30.0)
    """
    try:
        value = float(os.getenv("AUTO_SAVE_INTERVAL_SECONDS", "30"))
    except ValueError:
        value = 30.0
    return value if value > 0 else 30.0
