#!/usr/bin/env python3
"""
ABOUTME: Phonetic agreement rules for Slovene single-letter prepositions
ABOUTME: Maps the first sound of the following word to the expected s/z or k/h
"""

import unicodedata
from typing import Iterable, List, Optional

# ============================================================
# Constants
# ============================================================

CLASS_SZ = 'sz'
CLASS_KH = 'kh'

CANDIDATE_CLASSES = (CLASS_SZ, CLASS_KH)

# Voiceless consonants: "s" (and "k") are written before these
UNVOICED = frozenset('cčfhkpsšt')

# "k" becomes "h" before these
VELARS = frozenset('kg')

# First sound of the Slovene number word for each digit:
# ena, dve, tri, štiri, pet, šest, sedem, osem, devet, nič
DIGIT_SOUNDS = {
    0: 'n',
    1: 'e',
    2: 'd',
    3: 't',
    4: 'š',
    5: 'p',
    6: 'š',
    7: 's',
    8: 'o',
    9: 'd',
}

# Characters that end the word following a preposition (whitespace always does)
DEFAULT_DELIMITERS = (' ', '\n', '.', ',', ';', '?', '!')

_CLASS_LETTERS = {
    CLASS_SZ: ('s', 'z'),
    CLASS_KH: ('k', 'h'),
}


# ============================================================
# Rule Engine
# ============================================================

def first_sound(text: str) -> Optional[str]:
    """
    Return the lowercase letter that stands for the first sound of text.

    Leading punctuation, symbols and whitespace are skipped. A leading
    decimal digit is replaced by the first sound of its number word.

    Args:
        text: Raw text of the word following a preposition

    Returns:
        Single lowercase letter, or None if text has no letter or digit
    """
    if not text:
        return None

    # Composed form so that "c" + combining caron compares equal to "č"
    for ch in unicodedata.normalize('NFC', text):
        if ch.isdecimal():
            return DIGIT_SOUNDS[unicodedata.decimal(ch)]
        if ch.isalpha():
            return ch.lower()
    return None


def expected_preposition(next_word_text: str, candidate_class: str = CLASS_SZ) -> Optional[str]:
    """
    Decide which preposition of a phonetic class fits before next_word_text.

    Args:
        next_word_text: Text of the word that follows the preposition
        candidate_class: 'sz' or 'kh'

    Returns:
        Lowercase expected preposition, or None when there is no opinion
        (next_word_text holds no letter or digit)

    Raises:
        ValueError: If candidate_class is unknown
    """
    if candidate_class not in _CLASS_LETTERS:
        raise ValueError(f"Unknown preposition class: {candidate_class!r}")

    sound = first_sound(next_word_text)
    if sound is None:
        return None

    if candidate_class == CLASS_SZ:
        return 's' if sound in UNVOICED else 'z'
    return 'h' if sound in VELARS else 'k'


def candidate_class_for(letter: str) -> Optional[str]:
    """Return the phonetic class a preposition letter belongs to, or None."""
    key = (letter or '').strip().lower()
    for candidate_class, letters in _CLASS_LETTERS.items():
        if key in letters:
            return candidate_class
    return None


def letters_for_pairs(pairs: Iterable[str]) -> List[str]:
    """List the preposition letters to search for a selection of classes."""
    letters = []
    for pair in pairs:
        if pair not in _CLASS_LETTERS:
            raise ValueError(f"Unknown preposition class: {pair!r}")
        for letter in _CLASS_LETTERS[pair]:
            if letter not in letters:
                letters.append(letter)
    return letters


def match_case(letter: str, original: str) -> str:
    """Return letter upper-cased if original is upper case, else lower-cased."""
    if original and original.isupper():
        return letter.upper()
    return letter.lower()
