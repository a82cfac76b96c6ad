#!/usr/bin/env python3
"""
ABOUTME: Configuration for the preposition check (letter pairs, search scope, flag colour)
ABOUTME: Layers defaults, an optional JSON file, environment variables and CLI overrides
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from docx.enum.text import WD_COLOR_INDEX

from preposition_rules import CANDIDATE_CLASSES

# Search scopes: top-level body text (content controls included), or every
# story of the document
SCOPE_BODY = 'body'
SCOPE_ALL = 'body+headers+footers+tables'
SCOPES = (SCOPE_BODY, SCOPE_ALL)

DEFAULT_PAIRS = ['sz']
DEFAULT_SCOPE = SCOPE_BODY
DEFAULT_HIGHLIGHT = 'PINK'

ENV_PAIRS = 'PREPOSITION_CHECK_PAIRS'
ENV_SCOPE = 'PREPOSITION_CHECK_SCOPE'
ENV_HIGHLIGHT = 'PREPOSITION_CHECK_HIGHLIGHT'


@dataclass
class CheckConfig:
    """Which preposition classes are checked, where, and how mismatches are flagged"""
    pairs: List[str] = field(default_factory=lambda: list(DEFAULT_PAIRS))
    scope: str = DEFAULT_SCOPE
    highlight_color: str = DEFAULT_HIGHLIGHT  # WD_COLOR_INDEX member name

    def __post_init__(self):
        self.pairs = parse_pairs(self.pairs)
        if self.scope not in SCOPES:
            raise ValueError(
                f"Unknown scope: {self.scope!r} (expected one of: {', '.join(SCOPES)})"
            )
        self.highlight_color = str(self.highlight_color).strip().upper()
        if self.highlight_color not in WD_COLOR_INDEX.__members__:
            raise ValueError(f"Unknown highlight color: {self.highlight_color!r}")

    def to_dict(self) -> Dict:
        return {
            'pairs': list(self.pairs),
            'scope': self.scope,
            'highlight_color': self.highlight_color,
        }


def parse_pairs(value) -> List[str]:
    """
    Normalize a pair selection.

    Accepts a list (["sz", "kh"]) or a comma separated string ("sz,kh").
    The "sz" class is always checked, so it is added when missing.

    Raises:
        ValueError: If a pair is not a known preposition class
    """
    if isinstance(value, str):
        items = [v.strip().lower() for v in value.split(',')]
    else:
        items = [str(v).strip().lower() for v in (value or [])]

    pairs = []
    for item in items:
        if not item:
            continue
        if item not in CANDIDATE_CLASSES:
            raise ValueError(
                f"Unknown preposition pair: {item!r} (expected one of: {', '.join(CANDIDATE_CLASSES)})"
            )
        if item not in pairs:
            pairs.append(item)

    if 'sz' not in pairs:
        pairs.insert(0, 'sz')
    return pairs


def load_config(path: Optional[str] = None, overrides: Optional[Dict] = None) -> CheckConfig:
    """
    Build a CheckConfig from defaults, a JSON file, environment and overrides.

    Later layers win. Keys whose override value is None are ignored, so
    argparse namespaces can be passed through unchanged.

    Args:
        path: Optional JSON file with any of: pairs, scope, highlight_color
        overrides: Optional dict of explicit values (e.g., from CLI flags)

    Returns:
        Validated CheckConfig

    Raises:
        FileNotFoundError: If path is given but does not exist
        ValueError: If the file is not a JSON object or a value is invalid
    """
    values = {
        'pairs': list(DEFAULT_PAIRS),
        'scope': DEFAULT_SCOPE,
        'highlight_color': DEFAULT_HIGHLIGHT,
    }

    if path:
        config_path = Path(path)
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a JSON object: {config_path}")
        for key in values:
            if data.get(key) is not None:
                values[key] = data[key]

    env_pairs = os.getenv(ENV_PAIRS)
    if env_pairs:
        values['pairs'] = env_pairs
    env_scope = os.getenv(ENV_SCOPE)
    if env_scope:
        values['scope'] = env_scope.strip()
    env_highlight = os.getenv(ENV_HIGHLIGHT)
    if env_highlight:
        values['highlight_color'] = env_highlight

    for key, value in (overrides or {}).items():
        if key in values and value is not None:
            values[key] = value

    return CheckConfig(**values)
