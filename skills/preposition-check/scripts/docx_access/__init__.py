"""Word document access for the preposition check: search, read, flag and replace."""

from .common import DocumentAccessError, Location
from .document import DocxDocumentAccess

__all__ = [
    'DocumentAccessError',
    'DocxDocumentAccess',
    'Location',
]
