import logging
import re
from typing import List

from hellenika.gemini import call_gemini
from hellenika.glossing import normalize_word
from hellenika.prompts import EXPAND_WORD_PROMPT

logger = logging.getLogger(__name__)

# Heading styles the model has used for the etymology section, tried in order.
ETYMOLOGY_HEADINGS = [
    re.compile(r"\*\*(?:\d+\.\s*Etymology:|Etymology:)\*\*"),
    re.compile(r"\*\*(\d+\.\s*)?Etymology\*\*:", re.IGNORECASE),
    re.compile(r"\*\*\d+\.\s*Etymology:\*\*"),
    re.compile(r"(\d+\.\s*)?\*{0,2}Etymology\*{0,2}\s*:?\s*", re.IGNORECASE),
    re.compile(r"^\d+\.\s+\*\*Etymology\*\*:", re.MULTILINE),
]

# Anything that is not a letter
NON_LETTER = r"[\W\d_]"


def expand_word(word: str) -> dict:
    """Markdown analysis of a word: paradigms, etymology and usage."""
    result = call_gemini(EXPAND_WORD_PROMPT.format(word=normalize_word(word)))
    if not isinstance(result, dict):
        return {"expansion": "", "lemma": None}
    return {"expansion": result.get("expansion") or "", "lemma": result.get("lemma")}


def head_before_etymology(markdown: str) -> str:
    """
    Returns the part of an expansion that precedes its Etymology heading,
    or an empty string when no heading is recognised.
    """
    for pattern in ETYMOLOGY_HEADINGS:
        match = pattern.search(markdown or "")
        if match:
            return markdown[: match.start()]
    return ""


def contains_whole_word(text: str, word: str) -> bool:
    pattern = rf"(?:^|{NON_LETTER})({re.escape(word)})(?={NON_LETTER}|$)"
    return re.search(pattern, text) is not None


def find_existing_form(db, word: str):
    """
    Looks for a stored expansion that already covers word.

    A word counts as covered when it appears as a whole word in the
    paradigm part of an expansion, i.e. before the etymology, so an
    inflected form resolves to the entry of its lemma.
    """
    if not word:
        raise ValueError("Word cannot be empty")

    for candidate in db.find_expansions_containing(word):
        head = head_before_etymology(candidate["expansion"])
        if contains_whole_word(head, word):
            return candidate
    return None


def split_words(words: str) -> List[str]:
    return [w.strip().lower() for w in (words or "").split(",") if w.strip()]


def generate_and_save_word_expansion(db, words: str) -> list:
    """
    Resolves each comma-separated word to an expansion, reusing stored
    entries and generating (and saving) the rest.
    """
    if not words:
        raise ValueError("Word(s) cannot be empty.")

    word_list = split_words(words)
    if not word_list:
        raise ValueError("No valid words provided.")

    results = []
    for word in word_list:
        existing = find_existing_form(db, word)
        if existing:
            logger.info(f"Reusing stored expansion '{existing['word']}' for '{word}'")
            results.append(existing)
            continue

        generated = expand_word(word)
        if not generated["expansion"]:
            logger.warning(f"Failed to generate expansion for \"{word}\".")
            continue

        saved = db.insert_expanded_word(word, generated["expansion"], lemma=generated["lemma"])
        if saved:
            results.append(saved)

    if not results:
        raise ValueError("Could not find or generate an expansion for any of the provided words.")
    return results
