import logging
import re
import unicodedata
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List

from pydantic import ValidationError

from hellenika.config import GLOSS_MAX_RETRIES, GLOSS_WORKERS
from hellenika.gemini import call_gemini
from hellenika.models import GlossEntry
from hellenika.prompts import GLOSS_WORD_PROMPT, gloss_words_prompt

logger = logging.getLogger(__name__)

# Full stop, comma, ano teleia (U+00B7 after NFC) and the Greek question mark (";" after NFC)
PUNCTUATION_RE = re.compile(r"[.,·;]")


def strip_punctuation(word: str) -> str:
    return PUNCTUATION_RE.sub("", unicodedata.normalize("NFC", word or ""))


def normalize_word(word: str) -> str:
    """Lowercased, punctuation-free NFC form used as the key for glosses and lookups."""
    return strip_punctuation(word).lower().strip()


def _to_entry(word, payload):
    if not isinstance(payload, dict):
        return None
    try:
        return GlossEntry(**payload)
    except ValidationError as e:
        logger.warning(f"Discarding malformed gloss for '{word}': {e}")
        return None


def gloss_word(word: str) -> GlossEntry:
    """Glosses one word: lemma, part of speech, definition and morphology."""
    cleaned = strip_punctuation(word).strip()
    result = call_gemini(GLOSS_WORD_PROMPT.format(word=cleaned))
    return GlossEntry(**result)


def gloss_words(words: List[str]) -> Dict[str, GlossEntry]:
    """Glosses a batch of words in a single prompt, keyed by normalized word."""
    if not words:
        return {}

    result = call_gemini(gloss_words_prompt(words))
    if not isinstance(result, dict):
        logger.warning(f"Batch gloss returned {type(result).__name__}, expected an object")
        return {}

    glosses = {}
    for key, payload in result.items():
        entry = _to_entry(key, payload)
        if entry:
            glosses[normalize_word(key)] = entry
    return glosses


def unique_story_words(sentences) -> List[str]:
    """Unique normalized words of a story, in first-seen order."""
    seen = {}
    for sentence in sentences:
        words = sentence.words if hasattr(sentence, "words") else sentence.get("words", [])
        for note in words:
            raw = note.word if hasattr(note, "word") else note.get("word", "")
            key = normalize_word(raw)
            if key:
                seen.setdefault(key, None)
    return list(seen)


def gloss_story(sentences, max_retries: int = GLOSS_MAX_RETRIES) -> Dict[str, GlossEntry]:
    """
    Glosses every unique word of a story.

    Words the model leaves out of a batch answer are sent again, up to
    max_retries attempts in total. A failed attempt retries the whole
    remaining set because there is no way to know what succeeded.
    """
    remaining = unique_story_words(sentences)
    glosses = {}
    attempt = 0

    while remaining and attempt < max_retries:
        if attempt > 0:
            logger.warning(f"Retrying {len(remaining)} words that failed to gloss...")
        try:
            result = gloss_words(remaining)
            glosses.update(result)
            remaining = [w for w in remaining if w not in result]
        except Exception as e:
            logger.error(f"Batch gloss attempt {attempt + 1} failed: {e}")
        attempt += 1

    if remaining:
        logger.warning(
            f"After {max_retries} attempts, {len(remaining)} words could not be glossed: {remaining}"
        )
    return glosses


def gloss_words_parallel(words: List[str], workers: int = GLOSS_WORKERS) -> Dict[str, GlossEntry]:
    """Glosses each unique word with its own request, fanned out over a thread pool."""
    unique = list(dict.fromkeys(k for k in (normalize_word(w) for w in words) if k))
    if not unique:
        return {}

    glosses = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(gloss_word, word): word for word in unique}
        for future in as_completed(futures):
            word = futures[future]
            try:
                glosses[word] = future.result()
            except Exception as e:
                logger.error(f"Gloss Error for '{word}': {e}")

    # Preserve input order
    return {w: glosses[w] for w in unique if w in glosses}
