import logging
from typing import List

from transliterate import translit

from hellenika.gemini import call_gemini, generate_image, GenerationError
from hellenika.glossing import gloss_story
from hellenika.models import StoryRequest, StorySentence, Story
from hellenika.prompts import STORY_PROMPT, illustration_prompt

logger = logging.getLogger(__name__)


def transliterate_sentence(text: str) -> str:
    """
    Helper to transliterate a full Greek sentence to Latin characters.
    """
    if not text:
        return ""
    try:
        return translit(text, "el", reversed=True)
    except Exception as e:
        logger.warning(f"Transliteration Error: {e}")
        return text


def generate_greek_story(request: StoryRequest) -> List[StorySentence]:
    prompt = STORY_PROMPT.format(
        level=request.level,
        topic=request.topic,
        grammar_scope=request.grammar_scope,
        min_sentences=request.min_sentences,
        max_sentences=request.max_sentences,
    )
    result = call_gemini(prompt)

    raw_sentences = result.get("sentences", []) if isinstance(result, dict) else result
    sentences = []
    for raw in raw_sentences or []:
        sentence = StorySentence(**raw)
        if not sentence.sentence.strip():
            continue
        sentence.transliteration = transliterate_sentence(sentence.sentence)
        sentences.append(sentence)
    return sentences


def generate_story_illustrations(sentences: List[StorySentence]) -> List[str]:
    """
    One color illustration per sentence, generated in order.

    From the second sentence on, the previous illustration is handed to the
    model so characters and style carry through the story.
    """
    illustrations = []
    previous = None
    for index, sentence in enumerate(sentences, start=1):
        logger.info(f"Illustrating sentence {index}/{len(sentences)}")
        uri = generate_image(
            illustration_prompt(sentence.sentence, continued=previous is not None),
            reference_uri=previous,
        )
        illustrations.append(uri)
        previous = uri
    return illustrations


def generate_story(request: StoryRequest, illustrate: bool = True) -> Story:
    sentences = generate_greek_story(request)
    if not sentences:
        raise GenerationError("Generated story was empty.")

    illustrations = generate_story_illustrations(sentences) if illustrate else []
    glosses = gloss_story(sentences)

    return Story(
        sentences=sentences,
        illustrations=illustrations,
        glosses=glosses,
        topic=request.topic,
        level=request.level,
        grammar_scope=request.grammar_scope,
    )
