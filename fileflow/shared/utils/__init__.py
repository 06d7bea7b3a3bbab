"""Shared utilities: datetime, generators, sanitization."""

from fileflow.shared.utils.datetime import (
    advance_timestamp,
    ensure_utc,
    parse_iso_utc,
    utc_now,
)
from fileflow.shared.utils.generators import (
    file_path_for,
    generate_cuid,
    version_storage_path,
)
from fileflow.shared.utils.sanitization import (
    InputSanitizer,
    is_valid_identifier,
    sanitize_filename,
    validate_identifier,
)

__all__ = [
    "generate_cuid",
    "file_path_for",
    "version_storage_path",
    "utc_now",
    "ensure_utc",
    "advance_timestamp",
    "parse_iso_utc",
    "InputSanitizer",
    "is_valid_identifier",
    "sanitize_filename",
    "validate_identifier",
]
