"""Input sanitization: filenames, record ids and free text."""

import re
from typing import ClassVar

import nh3

MAX_ID_LENGTH = 64


class InputSanitizer:
    """
    Sanitize user inputs before they reach a storage adapter.

    Filenames are rewritten to a safe character set; ids are validated
    (never rewritten); free text is stripped of HTML with nh3.
    """

    ALLOWED_TAGS: ClassVar[set[str]] = set()
    IDENTIFIER_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"^[a-zA-Z0-9_-]{1," + str(MAX_ID_LENGTH) + r"}$"
    )
    UNSAFE_FILENAME_CHARS: ClassVar[re.Pattern[str]] = re.compile(r"[^a-zA-Z0-9._-]")

    @classmethod
    def sanitize_filename(cls, name: str) -> str:
        """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``.

        Idempotent: a sanitized name contains only allowed characters, so a
        second pass changes nothing.

        Args:
            name: Raw filename as supplied by the uploader.

        Returns:
            Sanitized filename.

        Raises:
            ValueError: If the name is empty.
        """
        if not name:
            raise ValueError("Filename is empty")
        return cls.UNSAFE_FILENAME_CHARS.sub("_", name)

    @classmethod
    def is_valid_identifier(cls, value: object) -> bool:
        """Return True if value is a well-formed record id."""
        return isinstance(value, str) and bool(cls.IDENTIFIER_PATTERN.fullmatch(value))

    @classmethod
    def sanitize_identifier(cls, value: str) -> str:
        """Return the id unchanged if well-formed.

        Raises:
            ValueError: If format is invalid.
        """
        if not cls.is_valid_identifier(value):
            raise ValueError("Invalid identifier format")
        return value

    @classmethod
    def sanitize_text(cls, value: str) -> str:
        """Strip all HTML tags (nh3) and surrounding whitespace."""
        if not value:
            return value
        return nh3.clean(value, tags=cls.ALLOWED_TAGS, attributes={}).strip()

    @classmethod
    def sanitize_tags(cls, tags: list[str] | None) -> list[str]:
        """Clean each tag, drop empties and duplicates, keep first-seen order."""
        seen: dict[str, None] = {}
        for tag in tags or []:
            cleaned = cls.sanitize_text(str(tag))
            if cleaned and cleaned not in seen:
                seen[cleaned] = None
        return list(seen)


def sanitize_filename(name: str) -> str:
    """Module-level shortcut for InputSanitizer.sanitize_filename."""
    return InputSanitizer.sanitize_filename(name)


def validate_identifier(value: str) -> str:
    """Validate and return identifier; raises ValueError if invalid."""
    return InputSanitizer.sanitize_identifier(value)


def is_valid_identifier(value: object) -> bool:
    return InputSanitizer.is_valid_identifier(value)
