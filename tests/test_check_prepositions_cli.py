#!/usr/bin/env python3
"""
ABOUTME: End-to-end tests for the check_prepositions command line
ABOUTME: Runs main()/run_check() against documents saved to tmp_path
"""

import json

import pytest
from docx import Document
from docx.enum.text import WD_COLOR_INDEX

from _preposition_helpers import build_document, make_session, run, save_document
from check_prepositions import build_parser, main, review, run_check  # type: ignore[import-not-found]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('PREPOSITION_CHECK_PAIRS', 'PREPOSITION_CHECK_SCOPE', 'PREPOSITION_CHECK_HIGHLIGHT'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def source(tmp_path):
    doc = build_document([
        "Grem s Ljubljane.",
        "Prišel je s prijateljem.",
        "On gre k gradu, z Kranja.",
    ])
    return save_document(doc, tmp_path / "pismo.docx")


def texts(path):
    return [p.text for p in Document(str(path)).paragraphs]


def flagged(path):
    return [(r.text, r.font.highlight_color)
            for p in Document(str(path)).paragraphs for r in p.runs
            if r.font.highlight_color is not None]


class TestModes:
    def test_scan_flags_and_saves_default_output(self, source, capsys):
        assert main([str(source)]) == 0

        out = capsys.readouterr().out
        output = source.with_name("pismo_checked.docx")
        assert f"Output to: {output}" in out
        assert "Mismatches: 2" in out
        assert "'s Ljubljane' -> 'z Ljubljane'" in out

        assert texts(output) == texts(source)
        assert flagged(output) == [
            ('s', WD_COLOR_INDEX.PINK),
            ('z', WD_COLOR_INDEX.PINK),
        ]

    def test_accept_all(self, source, tmp_path, capsys):
        output = tmp_path / "out.docx"

        assert main([str(source), '--mode', 'accept-all', '-o', str(output)]) == 0

        assert "Accepted: 2" in capsys.readouterr().out
        assert texts(output) == [
            "Grem z Ljubljane.",
            "Prišel je s prijateljem.",
            "On gre k gradu, s Kranja.",
        ]
        assert flagged(output) == []

    def test_accept_all_with_kh_pairs(self, source, tmp_path):
        output = tmp_path / "out.docx"

        assert main([str(source), '--mode', 'accept-all', '--pairs', 'sz,kh',
                     '-o', str(output)]) == 0

        assert texts(output)[2] == "On gre h gradu, s Kranja."

    def test_reject_all(self, source, tmp_path, capsys):
        output = tmp_path / "out.docx"

        assert main([str(source), '--mode', 'reject-all', '-o', str(output)]) == 0

        assert "Cleared: 2" in capsys.readouterr().out
        assert texts(output) == texts(source)
        assert flagged(output) == []

    def test_highlight_option(self, source, tmp_path):
        output = tmp_path / "out.docx"

        assert main([str(source), '--highlight', 'yellow', '-o', str(output)]) == 0

        assert {color for _, color in flagged(output)} == {WD_COLOR_INDEX.YELLOW}

    def test_dry_run_does_not_save(self, source, capsys):
        assert main([str(source), '--mode', 'accept-all', '--dry-run']) == 0

        assert "[DRY RUN] Would save to:" in capsys.readouterr().out
        assert not source.with_name("pismo_checked.docx").exists()

    def test_clean_document(self, tmp_path, capsys):
        path = save_document(build_document(["Grem z Ljubljane."]), tmp_path / "ok.docx")

        assert main([str(path)]) == 0
        assert "Mismatches: 0" in capsys.readouterr().out


class TestReview:
    def _run_review(self, source, tmp_path, answers):
        output = tmp_path / "out.docx"
        args = build_parser().parse_args([str(source), '--mode', 'review', '-o', str(output)])
        answers = iter(answers)

        def prompt(_text):
            try:
                return next(answers)
            except StopIteration:
                raise EOFError

        return run(run_check(args, prompt=prompt)), output

    def test_accept_then_reject(self, source, tmp_path):
        code, output = self._run_review(source, tmp_path, ['a', 'r'])

        assert code == 0
        assert texts(output)[0] == "Grem z Ljubljane."
        assert texts(output)[2] == "On gre k gradu, z Kranja."
        assert flagged(output) == []

    def test_unknown_answer_asks_again(self, source, tmp_path, capsys):
        code, output = self._run_review(source, tmp_path, ['x', 'A'])

        assert code == 0
        assert "Unknown answer" in capsys.readouterr().out
        assert texts(output)[0] == "Grem z Ljubljane."
        assert texts(output)[2] == "On gre k gradu, s Kranja."

    def test_quit_leaves_rest_flagged(self, source, tmp_path, capsys):
        code, output = self._run_review(source, tmp_path, ['a', 'q'])

        assert code == 0
        assert "Leaving 1 mismatch(es) flagged" in capsys.readouterr().out
        assert flagged(output) == [('z', WD_COLOR_INDEX.PINK)]

    def test_end_of_input_quits(self, source, tmp_path):
        code, output = self._run_review(source, tmp_path, [])

        assert code == 0
        assert len(flagged(output)) == 2

    def test_head_edited_during_review(self, capsys):
        doc = build_document(["Grem s Ljubljane.", "Pridem z Kranja."])
        access, session, _ = make_session(doc)
        run(session.scan())
        doc.paragraphs[0].runs[1].text = "x"
        answers = iter(['a', 'q'])

        ok = run(review(session, access, prompt=lambda _text: next(answers)))

        assert ok is True
        assert session.last_error is None
        assert len(session.queue) == 1
        assert "Leaving 1 mismatch(es) flagged" in capsys.readouterr().out
        assert [p.text for p in doc.paragraphs] == ["Grem x Ljubljane.", "Pridem z Kranja."]


class TestReport:
    def test_report_lines(self, source, tmp_path):
        report = tmp_path / "report.jsonl"

        assert main([str(source), '--report', str(report), '-o', str(tmp_path / "out.docx")]) == 0

        lines = [json.loads(line) for line in report.read_text(encoding='utf-8').splitlines()]
        meta, entries = lines[0], lines[1:]
        assert meta['type'] == 'meta'
        assert meta['source_file'] == str(source)
        assert meta['source_hash'].startswith('sha256:')
        assert meta['pairs'] == ['sz']
        assert meta['scope'] == 'body'

        assert [(e['index'], e['paragraph_index'], e['offset'], e['preposition'],
                 e['suggestion'], e['next_word']) for e in entries] == [
            (0, 0, 5, 's', 'z', 'Ljubljane'),
            (1, 2, 16, 'z', 's', 'Kranja'),
        ]
        assert all(e['part'] == 'body' for e in entries)
        assert "Ljubljane" in entries[0]['context']


class TestErrors:
    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.docx")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_config_value(self, source, capsys):
        assert main([str(source), '--highlight', 'ULTRAVIOLET']) == 1
        assert "Unknown highlight color" in capsys.readouterr().err

    def test_invalid_mode_rejected_by_parser(self, source):
        with pytest.raises(SystemExit):
            build_parser().parse_args([str(source), '--mode', 'fix'])
