#!/usr/bin/env python3
"""
ABOUTME: Checks s/z (and k/h) prepositions in a Word document against the next word's voicing
ABOUTME: Flags mismatches with highlights, optionally resolves them, and saves the result
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from check_config import SCOPES, load_config
from docx_access import DocxDocumentAccess
from mismatch_session import Mismatch, MismatchSession

MODE_SCAN = 'scan'
MODE_ACCEPT_ALL = 'accept-all'
MODE_REJECT_ALL = 'reject-all'
MODE_REVIEW = 'review'
MODES = (MODE_SCAN, MODE_ACCEPT_ALL, MODE_REJECT_ALL, MODE_REVIEW)

REVIEW_PROMPT = "  [a]ccept / [r]eject / [A]ccept all / [R]eject all / [q]uit: "


def describe_mismatch(access: DocxDocumentAccess, mismatch: Mismatch) -> str:
    loc = mismatch.location
    return (f"{loc.part} paragraph {loc.paragraph_index + 1}: "
            f"'{mismatch.token.text} {mismatch.token.next_word_text}' -> "
            f"'{mismatch.suggestion} {mismatch.token.next_word_text}' "
            f"| {access.context_at(loc)}")


def write_report(report_path: Path, access: DocxDocumentAccess, config,
                 mismatches: List[Mismatch]) -> None:
    """
    Write scan findings as JSONL: a meta line followed by one line per mismatch.
    """
    with open(report_path, 'w', encoding='utf-8') as f:
        meta = {
            'type': 'meta',
            'source_file': str(access.source_path) if access.source_path else None,
            'source_hash': access.source_hash,
            'checked_at': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S%z'),
            **config.to_dict(),
        }
        f.write(json.dumps(meta, ensure_ascii=False) + '\n')
        for index, mismatch in enumerate(mismatches):
            loc = mismatch.location
            entry = {
                'index': index,
                'part': loc.part,
                'paragraph_index': loc.paragraph_index,
                'offset': loc.start,
                'preposition': mismatch.token.text,
                'suggestion': mismatch.suggestion,
                'next_word': mismatch.token.next_word_text,
                'context': access.context_at(loc),
            }
            f.write(json.dumps(entry, ensure_ascii=False) + '\n')
    print(f"Report saved to: {report_path}")


async def review(session: MismatchSession, access: DocxDocumentAccess,
                 prompt: Callable[[str], str] = input) -> bool:
    """
    Walk the queue one mismatch at a time, asking what to do with each.

    Returns:
        True if every operation succeeded
    """
    ok = True
    while session.queue:
        print(describe_mismatch(access, session.queue[0]))
        try:
            answer = prompt(REVIEW_PROMPT).strip()
        except EOFError:
            answer = 'q'

        if answer == 'a':
            # A stale head is rebuilt by a rescan; only a host failure counts
            if not await session.accept_one() and session.last_error is not None:
                ok = False
        elif answer == 'r':
            if not await session.reject_one() and session.last_error is not None:
                ok = False
        elif answer == 'A':
            await session.accept_all()
            ok = not session.queue and ok
        elif answer == 'R':
            await session.reject_all()
            ok = not session.queue and ok
        elif answer == 'q':
            print(f"  Leaving {len(session.queue)} mismatch(es) flagged")
            break
        else:
            print("  Unknown answer, try again")
    return ok


async def run_check(args, prompt: Callable[[str], str] = input) -> int:
    config = load_config(args.config, overrides={
        'pairs': args.pairs,
        'scope': args.scope,
        'highlight_color': args.highlight,
    })
    access = DocxDocumentAccess.load(args.docx_file, verbose=args.verbose)
    session = MismatchSession(access, config=config, verbose=args.verbose)

    source_path = access.source_path
    output_path = Path(args.output) if args.output else \
        source_path.with_stem(source_path.stem + '_checked')

    print(f"Source file: {source_path}")
    print(f"Output to: {output_path}")
    print(f"Pairs: {', '.join(config.pairs)} | Scope: {config.scope}")
    if args.verbose:
        print("-" * 50)

    result = await session.scan()
    if not result.success:
        print(f"Error: {result.error_message or 'scan did not run'}", file=sys.stderr)
        return 1

    found = list(session.queue)
    print(f"Mismatches: {result.mismatch_count}")
    if args.verbose or args.mode == MODE_SCAN:
        for mismatch in found:
            print(f"  - {describe_mismatch(access, mismatch)}")

    if args.report:
        write_report(Path(args.report), access, config, found)

    ok = True
    if args.mode == MODE_ACCEPT_ALL:
        count = await session.accept_all()
        ok = not session.queue
        print(f"Accepted: {count}")
    elif args.mode == MODE_REJECT_ALL:
        count = await session.reject_all()
        ok = not session.queue
        print(f"Cleared: {count}")
    elif args.mode == MODE_REVIEW:
        ok = await review(session, access, prompt=prompt)

    print("-" * 50)
    print(f"Completed: {len(found)} found, {len(session.queue)} still flagged")
    access.save(output_path, dry_run=args.dry_run)
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check s/z (and k/h) prepositions in a Word document"
    )
    parser.add_argument('docx_file', help='Word document to check (.docx)')
    parser.add_argument('-o', '--output', help='Output file path (default: <name>_checked.docx)')
    parser.add_argument('--mode', choices=MODES, default=MODE_SCAN,
                        help='scan: flag only; accept-all/reject-all: resolve every mismatch; '
                             'review: decide one by one (default: scan)')
    parser.add_argument('--pairs',
                        help='Preposition pairs to check, comma separated: sz or sz,kh (default: sz)')
    parser.add_argument('--scope', choices=SCOPES,
                        help='Where to search (default: body)')
    parser.add_argument('--highlight',
                        help='Word highlight color for flagged prepositions (default: PINK)')
    parser.add_argument('--config', help='JSON config file with pairs/scope/highlight_color')
    parser.add_argument('--report', help='Write found mismatches to this JSONL file')
    parser.add_argument('--dry-run', action='store_true',
                        help='Check only, do not save')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run_check(args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
