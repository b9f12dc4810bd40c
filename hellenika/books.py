import logging
from concurrent.futures import ThreadPoolExecutor

from hellenika.config import VOCAB_BOOK_AUTHOR
from hellenika.gemini import call_gemini, generate_image, GenerationError
from hellenika.models import Book, BookRequest, Page, VocabBookRequest
from hellenika.prompts import (
    BOOK_PROMPT,
    COVER_PROMPT,
    FOOTNOTE_ILLUSTRATION_PROMPT,
    vocab_page_prompt,
)

logger = logging.getLogger(__name__)


def generate_greek_book(request: BookRequest) -> dict:
    """Title, author and pages of a book. No images are generated here."""
    result = call_gemini(
        BOOK_PROMPT.format(
            level=request.level,
            topic=request.topic,
            grammar_scope=request.grammar_scope,
            num_pages=request.num_pages,
        )
    )
    if not isinstance(result, dict) or not result.get("pages"):
        raise GenerationError("Failed to generate book content.")
    return result


def generate_book_cover(title: str, topic: str) -> str:
    return generate_image(COVER_PROMPT.format(title=title, topic=topic))


def generate_book(request: BookRequest) -> Book:
    # Content and cover are independent, so both requests run at once.
    # The cover only knows the topic because the title does not exist yet.
    with ThreadPoolExecutor(max_workers=2) as executor:
        content_future = executor.submit(generate_greek_book, request)
        cover_future = executor.submit(generate_book_cover, request.topic, request.topic)
        content = content_future.result()
        cover = cover_future.result()

    if not cover:
        raise GenerationError("Could not generate a book cover.")

    return Book(
        title=content.get("title", request.topic),
        author=content.get("author", ""),
        pages=[Page(**p) for p in content["pages"]],
        cover_illustration_uri=cover,
        topic=request.topic,
        level=request.level,
        grammar_scope=request.grammar_scope,
        kind="book",
    )


def page_text(page: Page) -> str:
    return "\n".join(p.text for p in page.paragraphs)


def vocab_book_title(vocab_list: str) -> str:
    return "A Story of: " + ", ".join(w.strip() for w in vocab_list.split(",")[:2])


def generate_vocab_memorize_book(request: VocabBookRequest) -> Book:
    """
    Builds a vocabulary-reinforcement story one page at a time.

    Every page after the first sees the previous page's Greek text so the
    narrative continues and incidental vocabulary gets reused.
    """
    pages = []
    previous_page_text = None

    for page_number in range(1, request.num_pages + 1):
        logger.info(f"Generating vocab page {page_number}/{request.num_pages}")
        result = call_gemini(
            vocab_page_prompt(
                level=request.level,
                vocab_list=request.vocab_list,
                grammar_scope=request.grammar_scope,
                page_number=page_number,
                previous_page_text=previous_page_text,
            )
        )
        if not isinstance(result, dict) or not result:
            raise GenerationError(f"Failed to generate page {page_number}.")

        result.setdefault("page_number", page_number)
        page = Page(**result)
        pages.append(page)
        previous_page_text = page_text(page)

    title = vocab_book_title(request.vocab_list)
    cover = generate_book_cover(title, request.vocab_list)

    return Book(
        title=title,
        author=VOCAB_BOOK_AUTHOR,
        pages=pages,
        cover_illustration_uri=cover,
        topic=request.vocab_list,
        level=request.level,
        grammar_scope=request.grammar_scope,
        kind="vocab",
    )


def generate_main_illustration(prompt: str) -> str:
    return generate_image(prompt)


def generate_footnote_illustration(prompt: str) -> str:
    return generate_image(FOOTNOTE_ILLUSTRATION_PROMPT.format(prompt=prompt))


def illustration_slot(book: Book, page_index: int, image_index: int, kind: str):
    """The main illustration or footnote an image belongs in."""
    if page_index < 0 or image_index < 0:
        raise IndexError("Illustration indices must be non-negative")
    if kind not in ("main", "footnote"):
        raise ValueError(f"Unknown illustration kind: {kind}")
    page = book.pages[page_index]
    slots = page.main_illustrations if kind == "main" else page.footnotes
    return slots[image_index]


def set_illustration(book: Book, page_index: int, image_index: int, kind: str, uri: str) -> Book:
    """Stores a generated image in a page's main illustration or footnote slot."""
    illustration_slot(book, page_index, image_index, kind).illustration_uri = uri
    return book


def illustrate_slot(book: Book, page_index: int, image_index: int, kind: str, prompt: str) -> Book:
    """
    Generates the image for one slot and stores it in the book.

    The slot is checked before any image is requested.
    """
    illustration_slot(book, page_index, image_index, kind)
    if kind == "main":
        uri = generate_main_illustration(prompt)
    else:
        uri = generate_footnote_illustration(prompt)
    return set_illustration(book, page_index, image_index, kind, uri)
