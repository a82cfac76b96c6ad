"""Navigation helpers for Word XML trees: parts, paragraphs and runs."""

import re
from typing import Dict, Iterator, List, Tuple

from docx.opc.constants import CONTENT_TYPE as CT
from lxml import etree

from check_config import SCOPE_ALL, SCOPE_BODY

from .common import (
    NS,
    PART_BODY,
    PART_FOOTER,
    PART_HEADER,
    W,
    DocumentAccessError,
)

# Run children that carry nothing but text; runs made only of these can be split
_TEXT_CHILD_TAGS = {
    f'{W}rPr', f'{W}t', f'{W}tab', f'{W}br', f'{W}cr',
    f'{W}noBreakHyphen', f'{W}softHyphen', f'{W}lastRenderedPageBreak',
}


# Body text: direct paragraphs and those wrapped in (possibly nested) block
# content controls, skipping table cells and paragraphs inside other paragraphs
_BODY_PARAGRAPHS = './/w:p[not(ancestor::w:tbl) and not(ancestor::w:p)]'
_ALL_PARAGRAPHS = './/w:p'


def _natural_key(name: str):
    """Sort '/word/header2.xml' before '/word/header10.xml'."""
    return [int(part) if part.isdigit() else part for part in re.split(r'(\d+)', name)]


class DocxNavigationMixin:
    def _xpath(self, elem, expr: str):
        """
        Execute XPath expression with proper namespace handling.

        python-docx's BaseOxmlElement has namespaces pre-registered,
        while pure lxml elements require explicit namespaces.

        Args:
            elem: Element to query (BaseOxmlElement or lxml.etree.Element)
            expr: XPath expression using namespace prefixes (e.g., './/w:p')

        Returns:
            List of matching elements
        """
        try:
            return elem.xpath(expr)
        except etree.XPathEvalError:
            return elem.xpath(expr, namespaces=NS)

    def _story_parts(self, scope: str) -> List[Tuple[str, object]]:
        """
        List the (part name, root element) pairs searched for a scope.

        Body comes first, then header parts, then footer parts, each group
        ordered by part name.
        """
        if scope == SCOPE_BODY:
            return [(PART_BODY, self.body_elem)]
        if scope != SCOPE_ALL:
            raise DocumentAccessError(f"Unknown search scope: {scope!r}")

        parts = [(PART_BODY, self.body_elem)]
        headers, footers = [], []
        for part in self.doc.part.package.iter_parts():
            if part.content_type == CT.WML_HEADER:
                headers.append(part)
            elif part.content_type == CT.WML_FOOTER:
                footers.append(part)
        for part in sorted(headers, key=lambda p: _natural_key(str(p.partname))):
            parts.append((PART_HEADER, part.element))
        for part in sorted(footers, key=lambda p: _natural_key(str(p.partname))):
            parts.append((PART_FOOTER, part.element))
        return parts

    def _iter_scope_paragraphs(self, scope: str) -> Iterator[Tuple[str, int, int, object]]:
        """
        Generator: iterate paragraphs of a scope in document order.

        Scope 'body' visits body paragraphs, including those inside block
        content controls (w:sdt), but not table cells or text boxes. The full
        scope descends into every nesting and visits the header and footer
        parts.

        Yields:
            (part_name, part_index, paragraph_index, w:p element)
        """
        expr = _ALL_PARAGRAPHS if scope != SCOPE_BODY else _BODY_PARAGRAPHS
        for part_index, (part_name, root) in enumerate(self._story_parts(scope)):
            for para_index, para in enumerate(self._xpath(root, expr)):
                yield part_name, part_index, para_index, para

    def _find_ancestor(self, elem, tag: str):
        """
        Find ancestor element with specified tag.

        Args:
            elem: Starting element
            tag: Full tag name including namespace (e.g., '{http://...}p')

        Returns:
            Ancestor element if found, None otherwise
        """
        parent = elem.getparent()
        while parent is not None:
            if parent.tag == tag:
                return parent
            parent = parent.getparent()
        return None

    def _root_of(self, elem):
        root = elem
        while root.getparent() is not None:
            root = root.getparent()
        return root

    def _is_attached(self, elem) -> bool:
        """Check that elem still hangs off one of the document's part roots."""
        if elem is None:
            return False
        if self._story_roots is None:
            self._story_roots = [self._root_of(root) for _, root in self._story_parts(SCOPE_ALL)]
        root = self._root_of(elem)
        return any(root is story_root for story_root in self._story_roots)

    def _extract_run_text(self, run_elem) -> str:
        """
        Extract the visible text of a single w:r element.

        Tabs map to '\\t', soft line breaks to '\\n'. Page and column breaks
        are layout elements and contribute nothing.
        """
        text_parts = []
        for elem in run_elem:
            if elem.tag == f'{W}t':
                text_parts.append(elem.text or '')
            elif elem.tag == f'{W}tab':
                text_parts.append('\t')
            elif elem.tag in (f'{W}br', f'{W}cr'):
                br_type = elem.get(f'{W}type')
                if br_type in (None, 'textWrapping'):
                    text_parts.append('\n')
            elif elem.tag == f'{W}noBreakHyphen':
                text_parts.append('-')
        return ''.join(text_parts)

    def _collect_runs_info(self, para_elem) -> Tuple[List[Dict], str]:
        """
        Collect the runs of a paragraph with their offsets in the paragraph text.

        Runs inside deleted revisions (w:del) are skipped, as are runs that
        belong to paragraphs nested inside this one (text boxes).

        Returns:
            Tuple of (runs_info, combined_text)
            runs_info: [{'elem': w:r, 'text': str, 'start': int, 'end': int}, ...]
        """
        runs_info = []
        pos = 0
        for run_elem in self._xpath(para_elem, './/w:r'):
            if self._find_ancestor(run_elem, f'{W}p') is not para_elem:
                continue
            if self._find_ancestor(run_elem, f'{W}del') is not None:
                continue
            text = self._extract_run_text(run_elem)
            runs_info.append({
                'elem': run_elem,
                'text': text,
                'start': pos,
                'end': pos + len(text),
            })
            pos += len(text)
        combined = ''.join(r['text'] for r in runs_info)
        return runs_info, combined

    def _find_run_info(self, runs_info: List[Dict], run_elem) -> Dict:
        for info in runs_info:
            if info['elem'] is run_elem:
                return info
        raise DocumentAccessError("Tracked run is no longer part of its paragraph")

    def _is_plain_text_run(self, run_elem) -> bool:
        """Check that a run holds nothing but text-like children."""
        return all(child.tag in _TEXT_CHILD_TAGS for child in run_elem)
