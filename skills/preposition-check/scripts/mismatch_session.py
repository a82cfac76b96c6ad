#!/usr/bin/env python3
"""
ABOUTME: Scan/flag/resolve session for s/z (and k/h) preposition mismatches
ABOUTME: Builds an ordered mismatch queue and applies accept/reject operations to it
"""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from check_config import CheckConfig
from preposition_rules import (
    DEFAULT_DELIMITERS,
    candidate_class_for,
    expected_preposition,
    letters_for_pairs,
    match_case,
)

# Notice ids, one per host notification slot
NOTICE_NO_ERRORS = 'noErrors'
NOTICE_CHECK_ERROR = 'checkError'
NOTICE_ACCEPT_ERROR = 'acceptError'
NOTICE_REJECT_ERROR = 'rejectError'
NOTICE_ACCEPT_ALL_ERROR = 'acceptAllError'
NOTICE_REJECT_ALL_ERROR = 'rejectAllError'
NOTICE_RESCAN = 'rescan'


# ============================================================
# Collaborators
# ============================================================

class DocumentAccess(ABC):
    """
    Host document operations the session relies on.

    Locations are opaque handles owned by the implementation; the session
    only stores them and orders them by their ``sort_key``. Writes are not
    guaranteed to be visible before ``sync()`` completes. Highlight colours
    are Word highlight names such as ``'PINK'``, or None for no highlight.

    Implementations report host failures as ``DocumentAccessError``; the
    session treats any exception raised here as a failed host call.
    """

    @abstractmethod
    async def search_whole_word(self, scope: str, letter: str, case_sensitive: bool = False) -> list:
        ...

    @abstractmethod
    async def text_at(self, location) -> str:
        ...

    @abstractmethod
    async def next_word_after(self, location, delimiters: Iterable[str] = DEFAULT_DELIMITERS):
        ...

    @abstractmethod
    async def highlight_at(self, location) -> Optional[str]:
        ...

    @abstractmethod
    async def set_highlight(self, location, color) -> None:
        ...

    @abstractmethod
    async def replace_text(self, location, new_text: str) -> None:
        ...

    @abstractmethod
    async def select_and_focus(self, location) -> None:
        ...

    @abstractmethod
    async def sync(self) -> None:
        ...


class ConsoleNotifier:
    """Prints host notifications: informational notices to stdout, errors to stderr"""

    def __init__(self):
        self.notices: List[tuple] = []

    def info(self, notice_id: str, message: str) -> None:
        self.notices.append(('info', notice_id, message))
        print(f"[Info] {message}")

    def error(self, notice_id: str, message: str) -> None:
        self.notices.append(('error', notice_id, message))
        print(f"[Error] {message}", file=sys.stderr)


# ============================================================
# Data Classes
# ============================================================

@dataclass
class PrepositionToken:
    """A located candidate preposition"""
    text: str                    # Letter as found, case preserved
    location: object             # Opaque Location handle
    next_word_text: str = ''     # Trimmed text of the following word


@dataclass
class Mismatch:
    """A candidate whose letter disagrees with the following word's voicing"""
    token: PrepositionToken
    suggestion: str              # Replacement letter, case matched to token.text

    @property
    def location(self):
        return self.token.location


@dataclass
class ScanResult:
    """Outcome of one scan pass"""
    success: bool
    mismatch_count: int = 0
    first_mismatch: Optional[Mismatch] = None
    error_message: Optional[str] = None


# ============================================================
# Session
# ============================================================

class MismatchSession:
    """
    Mismatch queue for one open document.

    The queue always holds unresolved mismatches in document order; single
    resolutions act on its head. Locations are tracked by the document
    access layer, so the queue is spliced after each resolution instead of
    rescanned. A head whose text no longer holds its preposition means the
    document changed underneath the session; the queue is then rebuilt with
    a fresh scan.

    No exception raised by the document access escapes a session operation:
    failures are reported through the notifier and ``last_error``.
    """

    def __init__(self, access: DocumentAccess, config: Optional[CheckConfig] = None,
                 notifier=None, verbose: bool = False):
        self.access = access
        self.config = config or CheckConfig()
        self.notifier = notifier or ConsoleNotifier()
        self.verbose = verbose

        self.queue: List[Mismatch] = []
        self.is_scanning = False
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------

    async def scan(self) -> ScanResult:
        """
        Rebuild the mismatch queue from the current document.

        A scan requested while another one is running is dropped and
        returns an unsuccessful result without an error message.
        """
        if self.is_scanning:
            if self.verbose:
                print("  [Scan] Already running, request dropped")
            return ScanResult(success=False)

        self.is_scanning = True
        try:
            previous, self.queue = self.queue, []
            for mismatch in previous:
                await self.access.set_highlight(mismatch.location, None)
            await self.access.sync()

            mismatches, leftover_flags = await self._collect_mismatches()

            for location in leftover_flags:
                await self.access.set_highlight(location, None)
            for mismatch in mismatches:
                await self.access.set_highlight(mismatch.location, self.config.highlight_color)
            await self.access.sync()
            self.queue = mismatches
        except Exception as e:
            self.queue = []
            self.last_error = str(e)
            self.notifier.error(NOTICE_CHECK_ERROR, "Preposition check failed. Please try again.")
            if self.verbose:
                print(f"  [Scan] {type(e).__name__}: {e}")
            return ScanResult(success=False, error_message=str(e))
        finally:
            self.is_scanning = False

        self.last_error = None
        if not self.queue:
            self.notifier.info(NOTICE_NO_ERRORS, "No mismatched prepositions found.")
            return ScanResult(success=True)

        await self._focus_head()
        return ScanResult(
            success=True,
            mismatch_count=len(self.queue),
            first_mismatch=self.queue[0],
        )

    async def _collect_mismatches(self):
        """
        Search every configured letter and keep the disagreeing ones.

        Returns:
            Tuple of (mismatches, leftover_flags)
            leftover_flags: candidates that are fine now but still carry the
            flag colour from an earlier check
        """
        letters = letters_for_pairs(self.config.pairs)

        candidates = []
        for letter in letters:
            candidates.extend(await self.access.search_whole_word(self.config.scope, letter))
        candidates.sort(key=lambda loc: loc.sort_key)

        mismatches = []
        leftover_flags = []
        previous = None
        for location in candidates:
            if previous is not None and previous.same_place(location):
                continue
            previous = location

            mismatch = await self._check_candidate(location, letters)
            if mismatch is not None:
                mismatches.append(mismatch)
                if self.verbose:
                    print(f"  [Scan] '{mismatch.token.text} {mismatch.token.next_word_text}' -> "
                          f"'{mismatch.suggestion}'")
            elif await self.access.highlight_at(location) == self.config.highlight_color:
                leftover_flags.append(location)

        if self.verbose and leftover_flags:
            print(f"  [Scan] Clearing {len(leftover_flags)} flag(s) left by an earlier check")
        return mismatches, leftover_flags

    async def _check_candidate(self, location, letters: List[str]) -> Optional[Mismatch]:
        raw = (await self.access.text_at(location)).strip()
        if len(raw) != 1 or raw.lower() not in letters:
            return None

        span = await self.access.next_word_after(location, DEFAULT_DELIMITERS)
        next_word = (await self.access.text_at(span)).strip()
        if not next_word:
            return None

        expected = expected_preposition(next_word, candidate_class_for(raw))
        if expected is None or expected == raw.lower():
            return None

        token = PrepositionToken(text=raw, location=location, next_word_text=next_word)
        return Mismatch(token=token, suggestion=match_case(expected, raw))

    # ------------------------------------------------------------
    # Single resolution
    # ------------------------------------------------------------

    async def accept_one(self) -> bool:
        """
        Replace the head mismatch with its suggestion and move to the next one.

        Returns False when nothing was applied: the queue was empty, the host
        failed, or the head went stale and the queue was rebuilt instead
        (``last_error`` is None in that last case unless the rescan failed).
        """
        return await self._resolve_head(accept=True)

    async def reject_one(self) -> bool:
        """Clear the head mismatch's flag, keep its text, and move to the next one."""
        return await self._resolve_head(accept=False)

    async def _resolve_head(self, accept: bool) -> bool:
        if not self.queue:
            return False

        head = self.queue[0]
        label = 'Accept' if accept else 'Reject'
        try:
            if accept and await self._is_stale(head):
                self.notifier.info(NOTICE_RESCAN, "The document changed since the last check; checking again.")
                await self.scan()
                return False

            if accept:
                await self.access.replace_text(head.location, head.suggestion)
            await self.access.set_highlight(head.location, None)
            await self.access.sync()
        except Exception as e:
            self.last_error = str(e)
            if accept:
                self.notifier.error(NOTICE_ACCEPT_ERROR, "Failed to apply change. Please re-run the check.")
            else:
                self.notifier.error(NOTICE_REJECT_ERROR, "Failed to reject change. Please re-run the check.")
            if self.verbose:
                print(f"  [{label}] {type(e).__name__}: {e}")
            return False

        self.last_error = None
        self.queue.pop(0)
        if self.verbose:
            print(f"  [{label}] '{head.token.text}' -> "
                  f"'{head.suggestion if accept else head.token.text}', {len(self.queue)} left")
        await self._focus_head()
        return True

    # ------------------------------------------------------------
    # Bulk resolution
    # ------------------------------------------------------------

    async def accept_all(self) -> int:
        """Apply every queued suggestion in document order; returns the number applied."""
        return await self._resolve_all(accept=True)

    async def reject_all(self) -> int:
        """Clear every queued flag in document order; returns the number cleared."""
        return await self._resolve_all(accept=False)

    async def _resolve_all(self, accept: bool) -> int:
        if not self.queue:
            return 0

        resolved = 0
        try:
            while self.queue:
                mismatch = self.queue[0]
                stale = accept and await self._is_stale(mismatch)
                if stale:
                    if self.verbose:
                        print("  [Accept] Text changed under a mismatch, clearing its flag only")
                elif accept:
                    await self.access.replace_text(mismatch.location, mismatch.suggestion)
                await self.access.set_highlight(mismatch.location, None)
                await self.access.sync()
                self.queue.pop(0)
                if not stale:
                    resolved += 1
        except Exception as e:
            self.last_error = str(e)
            if accept:
                self.notifier.error(NOTICE_ACCEPT_ALL_ERROR, "Failed to apply all changes. Please try again.")
            else:
                self.notifier.error(NOTICE_REJECT_ALL_ERROR, "Failed to clear changes. Please try again.")
            if self.verbose:
                print(f"  [{'Accept' if accept else 'Reject'}] {type(e).__name__}: {e} "
                      f"({len(self.queue)} left)")
            return resolved

        self.last_error = None
        if accept:
            self.notifier.info(NOTICE_NO_ERRORS, f"Accepted all ({resolved}).")
        else:
            self.notifier.info(NOTICE_NO_ERRORS, f"Cleared all ({resolved}).")
        return resolved

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    async def _is_stale(self, mismatch: Mismatch) -> bool:
        """Check whether a queued token's text no longer holds its preposition."""
        try:
            current = await self.access.text_at(mismatch.location)
        except Exception:
            return True
        return current.strip() != mismatch.token.text

    async def _focus_head(self) -> None:
        """Select the head of the queue; selection is a UX cue, so failures only log."""
        if not self.queue:
            return
        try:
            await self.access.select_and_focus(self.queue[0].location)
            await self.access.sync()
        except Exception as e:
            if self.verbose:
                print(f"  [Warning] Could not select next mismatch: {e}")
