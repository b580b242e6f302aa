"""Filesafe name and tag conversion.

This module converts Notion titles to names that are safe for all file
systems, and property values to tag tokens usable in markdown vaults.
"""

import re

# Characters that are invalid or problematic on at least one file system
UNSAFE_NAME_CHARS = re.compile(r'[\\/:*?"<>|]')
WHITESPACE_RUN = re.compile(r'\s+')
NON_TAG_CHARS = re.compile(r'[^A-Za-z0-9_-]')
UNDERSCORE_RUN = re.compile(r'_+')

DOCUMENT_EXTENSION = ".md"
FALLBACK_NAME = "Untitled"


class FilesafeConverter:
    """Converts titles to filesafe names and values to tag tokens.

    Name rules:
    - Characters \\ / : * ? " < > | → hyphen (-)
    - Runs of whitespace → single space
    - Leading/trailing whitespace → trimmed
    - Case and everything else preserved

    Tag rules:
    - Any character outside [A-Za-z0-9_-] → underscore
    - Runs of underscores → single underscore
    - Leading/trailing underscores → trimmed

    Examples:
        - "Q1: Plan/Review" → "Q1- Plan-Review"
        - "In Progress" → "In_Progress"
        - "High Priority!" → "High_Priority"
    """

    @staticmethod
    def sanitize_name(title: str) -> str:
        """Convert a title to a filesafe file or folder name.

        Args:
            title: Node title

        Returns:
            The sanitized name, or "Untitled" if nothing is left

        Examples:
            >>> FilesafeConverter.sanitize_name('Client/Server  "Notes"')
            'Client-Server -Notes-'
        """
        name = UNSAFE_NAME_CHARS.sub('-', title or '')
        name = WHITESPACE_RUN.sub(' ', name).strip()
        return name or FALLBACK_NAME

    @classmethod
    def title_to_filename(cls, title: str) -> str:
        """Convert a title to a document filename (sanitized name + .md)."""
        return f"{cls.sanitize_name(title)}{DOCUMENT_EXTENSION}"

    @staticmethod
    def to_tag(value: str) -> str:
        """Convert a choice property value to a tag token.

        Args:
            value: Select or multi-select option name

        Returns:
            Tag token without the leading '#' (may be empty)

        Examples:
            >>> FilesafeConverter.to_tag("In Progress")
            'In_Progress'
            >>> FilesafeConverter.to_tag("High Priority!")
            'High_Priority'
        """
        tag = NON_TAG_CHARS.sub('_', value or '')
        tag = UNDERSCORE_RUN.sub('_', tag)
        return tag.strip('_')
