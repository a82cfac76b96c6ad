"""Low-level run editing: isolating a span into its own run, replacing text, highlighting."""

import copy
from typing import Dict, Optional

from docx.enum.text import WD_COLOR_INDEX
from docx.text.run import Run

from .common import DocumentAccessError


class DocxEditPrimitivesMixin:
    def _span_run_info(self, para_elem, start: int, end: int) -> Dict:
        """
        Find the run that holds paragraph text [start, end).

        Raises:
            DocumentAccessError: If the span is empty or crosses run boundaries
        """
        if end <= start:
            raise DocumentAccessError(f"Empty span [{start}, {end}) cannot be tracked")

        runs_info, _ = self._collect_runs_info(para_elem)
        for info in runs_info:
            if info['start'] <= start and end <= info['end']:
                return info
        raise DocumentAccessError(f"Span [{start}, {end}) crosses run boundaries")

    def _can_isolate(self, info: Dict, start: int, end: int) -> bool:
        """Check whether a span of the run described by info can get a run of its own."""
        if info['start'] == start and info['end'] == end:
            return True
        return self._is_plain_text_run(info['elem'])

    def _isolate_span(self, para_elem, start: int, end: int):
        """
        Split runs so that paragraph text [start, end) sits in a run of its own.

        The original w:r element keeps the span; the text before and after it
        moves into copies of the run that share its w:rPr formatting.

        Args:
            para_elem: Paragraph holding the span
            start: Start offset in the paragraph text
            end: End offset in the paragraph text (exclusive)

        Returns:
            The w:r element holding exactly the span, or None when the run
            carries non-text content (fields, drawings) and cannot be split

        Raises:
            DocumentAccessError: If the span is empty or crosses run boundaries
        """
        info = self._span_run_info(para_elem, start, end)
        if not self._can_isolate(info, start, end):
            return None

        run_elem = info['elem']
        local_start = start - info['start']
        local_end = end - info['start']
        before = info['text'][:local_start]
        middle = info['text'][local_start:local_end]
        after = info['text'][local_end:]
        if not before and not after:
            return run_elem

        if before:
            before_elem = copy.deepcopy(run_elem)
            self._set_run_text(before_elem, before)
            run_elem.addprevious(before_elem)
        if after:
            after_elem = copy.deepcopy(run_elem)
            self._set_run_text(after_elem, after)
            run_elem.addnext(after_elem)
        self._set_run_text(run_elem, middle)
        return run_elem

    def _set_run_text(self, run_elem, text: str) -> None:
        """Replace the content of a run with text, keeping its formatting."""
        Run(run_elem, None).text = text

    def _set_run_highlight(self, run_elem, color: Optional[WD_COLOR_INDEX]) -> None:
        """Apply a highlight colour to a run, or remove it when color is None."""
        Run(run_elem, None).font.highlight_color = color

    def _get_run_highlight(self, run_elem) -> Optional[WD_COLOR_INDEX]:
        return Run(run_elem, None).font.highlight_color
