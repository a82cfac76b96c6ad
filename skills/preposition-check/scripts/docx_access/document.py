"""Document access over a python-docx Document, composed from focused mixins."""

import functools
import hashlib
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from docx import Document
from docx.enum.text import WD_COLOR_INDEX

from preposition_rules import DEFAULT_DELIMITERS

from .common import (
    DocumentAccessError,
    Location,
    format_text_preview,
)
from .edit_primitives import DocxEditPrimitivesMixin
from .navigation import DocxNavigationMixin

_OP_HIGHLIGHT = 'highlight'
_OP_REPLACE = 'replace'
_OP_SELECT = 'select'


def _reports_access_errors(method):
    """Re-raise python-docx/lxml failures of a read as DocumentAccessError."""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except DocumentAccessError:
            raise
        except Exception as e:
            raise DocumentAccessError(f"{method.__name__} failed: {e}") from e
    return wrapper


def _color_index(color: Union[str, WD_COLOR_INDEX, None]) -> Optional[WD_COLOR_INDEX]:
    """Accept a highlight colour by Word name ('PINK') or as WD_COLOR_INDEX."""
    if color is None or isinstance(color, WD_COLOR_INDEX):
        return color
    return WD_COLOR_INDEX[str(color).strip().upper()]


class DocxDocumentAccess(DocxNavigationMixin, DocxEditPrimitivesMixin):
    """
    Search, read, write and flag operations on an open .docx document.

    Reads (search_whole_word, text_at, next_word_after, highlight_at) see
    committed state. Writes (set_highlight, replace_text, select_and_focus)
    are queued and applied in order by sync(), the way a host batches
    requests until the next round trip.

    Search hits are paragraph spans. The first write to a span moves it into
    a run of its own, and from then on its Location follows that run.
    """

    def __init__(self, document=None, source_path: Optional[str] = None,
                 verbose: bool = False):
        self.source_path = Path(source_path) if source_path else None
        if document is None:
            if self.source_path is None:
                raise ValueError("Either document or source_path is required")
            if not self.source_path.exists():
                raise FileNotFoundError(f"Document not found: {self.source_path}")
            document = Document(str(self.source_path))
        self.doc = document
        self.body_elem = document.element.body
        self.verbose = verbose

        self.selection: Optional[Location] = None
        self._pending: List[Tuple[str, Location, object]] = []
        self._story_roots = None

    @classmethod
    def load(cls, path: str, verbose: bool = False) -> 'DocxDocumentAccess':
        return cls(source_path=path, verbose=verbose)

    @property
    def source_hash(self) -> Optional[str]:
        """SHA256 of the source file as loaded from disk"""
        if self.source_path is None:
            return None
        sha256 = hashlib.sha256()
        with open(self.source_path, 'rb') as f:
            for chunk in iter(lambda: f.read(8192), b''):
                sha256.update(chunk)
        return f"sha256:{sha256.hexdigest()}"

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ============================================================
    # Reads
    # ============================================================

    @_reports_access_errors
    async def search_whole_word(self, scope: str, letter: str,
                                case_sensitive: bool = False) -> List[Location]:
        """
        Find whole-word occurrences of letter within scope, in document order.

        The document is not modified: hits are returned as paragraph spans
        and only get a run of their own once something is written to them.
        Hits inside runs that also hold fields or drawings could never be
        written to and are left out.

        Raises:
            DocumentAccessError: If scope is unknown
        """
        if not letter:
            raise DocumentAccessError("Search text must not be empty")

        flags = 0 if case_sensitive else re.IGNORECASE
        pattern = re.compile(rf'(?<!\w){re.escape(letter)}(?!\w)', flags)

        hits = []
        for part_name, part_index, para_index, para in self._iter_scope_paragraphs(scope):
            _, combined = self._collect_runs_info(para)
            for match in pattern.finditer(combined):
                info = self._span_run_info(para, match.start(), match.end())
                if not self._can_isolate(info, match.start(), match.end()):
                    if self.verbose:
                        print(f"  [Search] Skipping '{match.group()}' in {part_name} "
                              f"paragraph {para_index}: run holds non-text content")
                    continue
                hits.append(Location(
                    part=part_name,
                    part_index=part_index,
                    paragraph_index=para_index,
                    paragraph=para,
                    start=match.start(),
                    end=match.end(),
                ))

        if self.verbose:
            print(f"  [Search] '{letter}' in {scope}: {len(hits)} hit(s)")
        return hits

    @_reports_access_errors
    async def text_at(self, location: Location) -> str:
        """
        Return the current text at a location.

        Raises:
            DocumentAccessError: If the location is no longer in the document
        """
        if location.is_tracked:
            if not self._is_attached(location.run):
                raise DocumentAccessError("Location is no longer part of the document")
            return self._extract_run_text(location.run)

        if not self._is_attached(location.paragraph):
            raise DocumentAccessError("Location is no longer part of the document")
        _, combined = self._collect_runs_info(location.paragraph)
        return combined[location.start:location.end]

    @_reports_access_errors
    async def next_word_after(self, location: Location,
                              delimiters: Iterable[str] = DEFAULT_DELIMITERS) -> Location:
        """
        Locate the word-like span that follows a location in the same paragraph.

        Whitespace right after the location is skipped; the span then runs
        up to the next delimiter or whitespace character. When a delimiter
        follows immediately, or the paragraph ends, the span is empty.

        Raises:
            DocumentAccessError: If the location is no longer in the document
        """
        if not self._is_attached(location.paragraph):
            raise DocumentAccessError("Location is no longer part of the document")

        runs_info, combined = self._collect_runs_info(location.paragraph)
        if location.is_tracked:
            end = self._find_run_info(runs_info, location.run)['end']
        else:
            end = location.end

        stops = set(delimiters)
        start = end
        while start < len(combined) and combined[start].isspace():
            start += 1
        stop = start
        while stop < len(combined) and combined[stop] not in stops and not combined[stop].isspace():
            stop += 1

        return Location(
            part=location.part,
            part_index=location.part_index,
            paragraph_index=location.paragraph_index,
            paragraph=location.paragraph,
            start=start,
            end=stop,
        )

    @_reports_access_errors
    async def highlight_at(self, location: Location) -> Optional[str]:
        """
        Return the Word highlight colour name at a location, or None.

        Untracked spans report the highlight of the run that holds them.

        Raises:
            DocumentAccessError: If the location is no longer in the document
        """
        if location.is_tracked:
            if not self._is_attached(location.run):
                raise DocumentAccessError("Location is no longer part of the document")
            color = self._get_run_highlight(location.run)
        else:
            if not self._is_attached(location.paragraph):
                raise DocumentAccessError("Location is no longer part of the document")
            info = self._span_run_info(location.paragraph, location.start, location.end)
            color = self._get_run_highlight(info['elem'])
        return color.name if color is not None else None

    def context_at(self, location: Location, width: int = 30) -> str:
        """Paragraph text around a location, for reports and console output."""
        runs_info, combined = self._collect_runs_info(location.paragraph)
        if location.is_tracked:
            try:
                info = self._find_run_info(runs_info, location.run)
                start, end = info['start'], info['end']
            except DocumentAccessError:
                start, end = location.start, location.end
        else:
            start, end = location.start, location.end
        left = max(0, start - width)
        return format_text_preview(combined[left:end + width], max_len=4 * width)

    # ============================================================
    # Writes (queued until sync)
    # ============================================================

    async def set_highlight(self, location: Location,
                            color: Union[str, WD_COLOR_INDEX, None]) -> None:
        """Flag a location with a Word highlight colour (name or WD_COLOR_INDEX), or clear it."""
        self._pending.append((_OP_HIGHLIGHT, location, color))

    async def replace_text(self, location: Location, new_text: str) -> None:
        self._pending.append((_OP_REPLACE, location, new_text))

    async def select_and_focus(self, location: Location) -> None:
        self._pending.append((_OP_SELECT, location, None))

    async def sync(self) -> None:
        """
        Apply queued writes in order.

        On failure the writes applied so far stay applied, the rest of the
        batch is dropped and DocumentAccessError is raised.
        """
        pending, self._pending = self._pending, []
        for index, (op, location, value) in enumerate(pending):
            try:
                self._apply(op, location, value)
            except DocumentAccessError:
                if self.verbose:
                    print(f"  [Sync] Dropped {len(pending) - index - 1} queued write(s) after failure")
                raise
            except Exception as e:
                raise DocumentAccessError(f"{op} failed: {e}") from e

    def _apply(self, op: str, location: Location, value) -> None:
        target = location.run if location.is_tracked else location.paragraph
        if op == _OP_HIGHLIGHT and value is None:
            if not self._is_attached(target):
                # Nothing left in the document to clear
                return
            if not location.is_tracked:
                info = self._span_run_info(location.paragraph, location.start, location.end)
                if self._get_run_highlight(info['elem']) is None:
                    # Already clear; leave the run unsplit
                    return

        if not self._is_attached(location.paragraph):
            raise DocumentAccessError("Location is no longer part of the document")

        if op == _OP_SELECT:
            self.selection = location
            return

        run_elem = self._resolve_run(location)
        if op == _OP_HIGHLIGHT:
            self._set_run_highlight(run_elem, _color_index(value))
        elif op == _OP_REPLACE:
            self._set_run_text(run_elem, value)
        else:
            raise DocumentAccessError(f"Unknown operation: {op}")

    def _resolve_run(self, location: Location):
        """Return the run holding a location, isolating untracked spans on demand."""
        if location.is_tracked:
            if not self._is_attached(location.run):
                raise DocumentAccessError("Location is no longer part of the document")
            return location.run

        run_elem = self._isolate_span(location.paragraph, location.start, location.end)
        if run_elem is None:
            raise DocumentAccessError("Span sits in a run with non-text content")
        location.run = run_elem
        return run_elem

    # ============================================================
    # Persistence
    # ============================================================

    def save(self, output_path: str, dry_run: bool = False) -> None:
        """Save the modified document"""
        if self._pending:
            raise DocumentAccessError(f"{len(self._pending)} queued write(s) not synced")
        if dry_run:
            print(f"[DRY RUN] Would save to: {output_path}")
            return
        self.doc.save(str(output_path))
        print(f"Saved to: {output_path}")
