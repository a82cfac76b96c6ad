#!/usr/bin/env python3
"""
ABOUTME: Shared constants and data classes for docx document access
ABOUTME: Defines the Location handle and the DocumentAccessError raised on host failures
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


# ============================================================
# Constants
# ============================================================

NS = {
    'w': 'http://schemas.openxmlformats.org/wordprocessingml/2006/main',
    'w14': 'http://schemas.microsoft.com/office/word/2010/wordml',
    'r': 'http://schemas.openxmlformats.org/officeDocument/2006/relationships',
}

W = f'{{{NS["w"]}}}'

PART_BODY = 'body'
PART_HEADER = 'header'
PART_FOOTER = 'footer'


# ============================================================
# Exceptions
# ============================================================

class DocumentAccessError(Exception):
    """A document operation failed (detached location, bad part, unsaved state)"""


# ============================================================
# Data Classes
# ============================================================

@dataclass(eq=False)
class Location:
    """
    Opaque handle to a span of document text.

    Candidate tokens are tracked by their own w:r element (``run``), so the
    handle keeps pointing at the same letter when text elsewhere in the
    paragraph changes. Spans returned by next-word lookups carry character
    offsets into the paragraph instead and are only valid until the next
    write to that paragraph.
    """
    part: str                          # body | header | footer
    part_index: int                    # Order of the part within the document
    paragraph_index: int               # Paragraph order within the part
    paragraph: object = field(repr=False)   # w:p element
    run: Optional[object] = field(default=None, repr=False)  # tracked w:r element
    start: int = 0                     # Offset in paragraph text
    end: int = 0

    @property
    def is_tracked(self) -> bool:
        return self.run is not None

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        """Document order key: part, paragraph, offset"""
        return (self.part_index, self.paragraph_index, self.start)

    def same_place(self, other: 'Location') -> bool:
        if self.run is not None or other.run is not None:
            return self.run is other.run
        return (self.paragraph is other.paragraph
                and self.start == other.start and self.end == other.end)


def format_text_preview(text: str, max_len: int = 30) -> str:
    """
    Format text for log output: remove newlines and truncate.

    Args:
        text: Text to format
        max_len: Maximum length before truncation

    Returns:
        Clean, truncated text with "..." suffix if truncated
    """
    if not text:
        return ''
    clean = text.replace('\n', ' ').replace('\r', '').replace('\t', ' ')
    while '  ' in clean:
        clean = clean.replace('  ', ' ')
    clean = clean.strip()
    if len(clean) > max_len:
        return clean[:max_len] + '...'
    return clean
