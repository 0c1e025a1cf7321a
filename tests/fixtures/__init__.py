"""
Sample documents shared by the tests.
"""

from .sample_documents import (
    CONTENT_START_MARKER,
    HEADER_END_MARKER,
    SOURCE_ADOC,
    TARGET_TXT,
)

__all__ = [
    "CONTENT_START_MARKER",
    "HEADER_END_MARKER",
    "SOURCE_ADOC",
    "TARGET_TXT",
]
