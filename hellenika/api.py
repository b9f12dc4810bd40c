from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel
from typing import Dict, List, Literal, Optional
import logging
import threading
from dotenv import load_dotenv

from hellenika.config import ENV_FILE
from hellenika.database import DatabaseManager
from hellenika.models import (
    StoryRequest,
    Story,
    SavedStory,
    StoryListItem,
    GlossEntry,
    BookRequest,
    VocabBookRequest,
    Book,
    SavedBook,
    BookListItem,
    ExpandedWord,
    ExpandedWordListItem,
    Note,
    NotebookBook,
    DashboardMetrics,
    EditorType,
)
from hellenika.stories import generate_story
from hellenika.glossing import gloss_word, gloss_words, gloss_words_parallel
from hellenika.books import (
    generate_book,
    generate_vocab_memorize_book,
    generate_main_illustration,
    generate_footnote_illustration,
    illustrate_slot,
)
from hellenika.expansion import generate_and_save_word_expansion
from hellenika.lookup import WordLookupQueue
from hellenika.notes import build_folder_tree, filter_notes
from hellenika.export import glosses_to_frame, expanded_words_to_frame, to_csv_text
from hellenika.audio import generate_audio

# 1. Logging & Config
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("hellenika-api")

STORY_FAILURE = (
    "An unexpected error occurred while generating the story. The AI service may be "
    "temporarily unavailable. Please try again later."
)
BOOK_FAILURE = (
    "An unexpected error occurred while generating the book. The AI service may be "
    "temporarily unavailable. Please try again later."
)

app = FastAPI(title="Hellenika Komiks API", version="0.1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Lifecycle
db = None
lookup_stop = threading.Event()
lookup_thread = None


def get_db():
    if not db:
        raise HTTPException(500, "Database not ready")
    return db


def expand_for_lookup(words: str):
    return generate_and_save_word_expansion(get_db(), words)


lookup_queue = WordLookupQueue(expand_for_lookup)


@app.on_event("startup")
async def startup_event():
    global db, lookup_thread
    logger.info(">>> STARTUP SEQUENCE <<<")

    if ENV_FILE.exists():
        load_dotenv(dotenv_path=ENV_FILE)

    try:
        db = DatabaseManager()
        logger.info(f"--- DATABASE: Ready at {db.db_path}")
    except Exception as e:
        logger.error(f"--- DATABASE ERROR: {e}")

    lookup_stop.clear()
    lookup_thread = threading.Thread(
        target=lookup_queue.run, args=(lookup_stop,), name="word-lookup", daemon=True
    )
    lookup_thread.start()


@app.on_event("shutdown")
async def shutdown_event():
    lookup_stop.set()
    if lookup_thread:
        lookup_thread.join(timeout=5)
    if db:
        db.close()


# 3. Request Models
class StoryGenerateRequest(StoryRequest):
    illustrate: bool = True


class WordRequest(BaseModel):
    word: str


class GlossBatchRequest(BaseModel):
    words: List[str]
    parallel: bool = False


class IllustrationRequest(BaseModel):
    prompt: str


class ExpansionUpdate(BaseModel):
    expansion: str


class TagRequest(BaseModel):
    tag: str


class BulkTagRequest(BaseModel):
    ids: List[int]
    tag: str


class NoteCreate(BaseModel):
    title: str
    folder_path: Optional[str] = None
    editor_type: EditorType = "default"
    notebook_book_id: Optional[int] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    is_pinned: Optional[bool] = None
    folder_path: Optional[str] = None
    editor_type: Optional[EditorType] = None
    notebook_book_id: Optional[int] = None
    page_order: Optional[int] = None


class NotebookCreate(BaseModel):
    title: str


class NotebookUpdate(BaseModel):
    title: Optional[str] = None
    is_pinned: Optional[bool] = None


class SpeakRequest(BaseModel):
    text: str


class BookIllustrationRequest(BaseModel):
    page_index: int
    image_index: int
    kind: Literal["main", "footnote"]
    prompt: str


def check_title(fields: dict):
    # title is NOT NULL; an explicit null or blank value is a bad request
    if "title" in fields and not (fields["title"] or "").strip():
        raise HTTPException(400, "Title is required.")


# 4. Stories

@app.post("/stories/generate", response_model=Story)
def generate_story_endpoint(request: StoryGenerateRequest):
    try:
        logger.info(f"Generating story: {request.topic} ({request.level})")
        return generate_story(request, illustrate=request.illustrate)
    except Exception as e:
        logger.error(f"Story Error: {e}")
        raise HTTPException(500, STORY_FAILURE)


@app.post("/stories")
def save_story(story: Story):
    if not story.sentences:
        raise HTTPException(400, "Invalid story data provided.")
    story_id = get_db().save_story(story.model_dump())
    return {"success": True, "id": story_id}


@app.get("/stories", response_model=List[StoryListItem])
def list_stories():
    return get_db().list_stories()


@app.get("/stories/{story_id}", response_model=SavedStory)
def get_story(story_id: int):
    story = get_db().get_story(story_id)
    if not story:
        raise HTTPException(404, "Story not found")
    return story


@app.delete("/stories/{story_id}")
def delete_story(story_id: int):
    if not get_db().delete_story(story_id):
        raise HTTPException(404, "Story not found")
    return {"success": True}


@app.get("/stories/{story_id}/glossary.csv")
def export_story_glossary(story_id: int):
    story = get_db().get_story(story_id)
    if not story:
        raise HTTPException(404, "Story not found")
    csv_text = to_csv_text(glosses_to_frame(story["glosses"]))
    return Response(content=csv_text, media_type="text/csv")


# 5. Glossing

@app.post("/gloss", response_model=GlossEntry)
def gloss_endpoint(request: WordRequest):
    if not request.word.strip():
        raise HTTPException(400, "Word cannot be empty.")
    try:
        return gloss_word(request.word)
    except Exception as e:
        logger.error(f"Gloss Error: {e}")
        raise HTTPException(500, str(e))


@app.post("/gloss/batch", response_model=Dict[str, GlossEntry])
def gloss_batch_endpoint(request: GlossBatchRequest):
    try:
        if request.parallel:
            return gloss_words_parallel(request.words)
        return gloss_words(request.words)
    except Exception as e:
        logger.error(f"Batch Gloss Error: {e}")
        raise HTTPException(500, str(e))


# 6. Books

@app.post("/books/generate", response_model=Book)
def generate_book_endpoint(request: BookRequest):
    try:
        logger.info(f"Generating book: {request.topic} ({request.num_pages} pages)")
        return generate_book(request)
    except Exception as e:
        logger.error(f"Book Error: {e}")
        raise HTTPException(500, BOOK_FAILURE)


@app.post("/vocab-books/generate", response_model=Book)
def generate_vocab_book_endpoint(request: VocabBookRequest):
    try:
        logger.info(f"Generating vocab book: {request.vocab_list}")
        return generate_vocab_memorize_book(request)
    except Exception as e:
        logger.error(f"Vocab Book Error: {e}")
        raise HTTPException(500, BOOK_FAILURE)


@app.post("/books")
def save_book(book: Book):
    if not book.pages:
        raise HTTPException(400, "Invalid book data provided.")
    book_id = get_db().save_book(book.model_dump())
    return {"success": True, "id": book_id}


@app.get("/books", response_model=List[BookListItem])
def list_books(kind: Optional[str] = None):
    return get_db().list_books(kind)


@app.get("/books/{book_id}", response_model=SavedBook)
def get_book(book_id: int):
    book = get_db().get_book(book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book


@app.delete("/books/{book_id}")
def delete_book(book_id: int):
    if not get_db().delete_book(book_id):
        raise HTTPException(404, "Book not found")
    return {"success": True}


@app.post("/illustrations/main")
def main_illustration(request: IllustrationRequest):
    try:
        return {"illustration_uri": generate_main_illustration(request.prompt)}
    except Exception as e:
        logger.error(f"Illustration Error: {e}")
        raise HTTPException(500, str(e))


@app.post("/illustrations/footnote")
def footnote_illustration(request: IllustrationRequest):
    try:
        return {"illustration_uri": generate_footnote_illustration(request.prompt)}
    except Exception as e:
        logger.error(f"Footnote Illustration Error: {e}")
        raise HTTPException(500, str(e))


@app.put("/books/{book_id}/illustrations", response_model=SavedBook)
def illustrate_saved_book(book_id: int, request: BookIllustrationRequest):
    saved = get_db().get_book(book_id)
    if not saved:
        raise HTTPException(404, "Book not found")

    book = Book(**saved)
    try:
        illustrate_slot(book, request.page_index, request.image_index, request.kind, request.prompt)
    except (IndexError, ValueError) as e:
        raise HTTPException(400, str(e) or "No such illustration slot.")
    except Exception as e:
        logger.error(f"Illustration Error: {e}")
        raise HTTPException(500, str(e))

    get_db().update_book_pages(book_id, [page.model_dump() for page in book.pages])
    return get_db().get_book(book_id)


# 7. Word Expansion

@app.post("/expand")
def expand_endpoint(request: WordRequest):
    if not request.word.strip():
        raise HTTPException(400, "A word is required in the request body.")
    try:
        return {"data": generate_and_save_word_expansion(get_db(), request.word)}
    except ValueError as e:
        raise HTTPException(400, str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Expand Error: {e}")
        raise HTTPException(500, str(e) or "An unexpected internal error occurred.")


@app.get("/expanded-words", response_model=List[ExpandedWordListItem])
def list_expanded_words():
    return get_db().list_expanded_words()


@app.get("/expanded-words/search", response_model=List[ExpandedWordListItem])
def search_expanded_words(q: str = ""):
    return get_db().search_expanded_words(q)


@app.get("/expanded-words/export.csv")
def export_expanded_words():
    csv_text = to_csv_text(expanded_words_to_frame(get_db().all_expanded_words()))
    return Response(content=csv_text, media_type="text/csv")


@app.get("/expanded-words/{word_id}", response_model=ExpandedWord)
def get_expanded_word(word_id: int):
    word = get_db().get_expanded_word(word_id)
    if not word:
        raise HTTPException(404, "Word not found")
    return word


@app.put("/expanded-words/{word_id}", response_model=ExpandedWord)
def update_expanded_word(word_id: int, request: ExpansionUpdate):
    word = get_db().update_expansion(word_id, request.expansion)
    if not word:
        raise HTTPException(404, "Word not found")
    return word


@app.post("/expanded-words/{word_id}/tags", response_model=ExpandedWord)
def add_tag(word_id: int, request: TagRequest):
    try:
        word = get_db().add_tag(word_id, request.tag)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not word:
        raise HTTPException(404, "Word not found")
    return word


@app.delete("/expanded-words/{word_id}/tags/{tag}", response_model=ExpandedWord)
def remove_tag(word_id: int, tag: str):
    try:
        word = get_db().remove_tag(word_id, tag)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not word:
        raise HTTPException(404, "Word not found")
    return word


@app.get("/tags", response_model=List[str])
def list_tags():
    return get_db().get_all_tags()


@app.post("/tags/bulk")
def bulk_tag(request: BulkTagRequest):
    try:
        return {"updated": get_db().add_tag_bulk(request.ids, request.tag)}
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.get("/tags/{tag}/words", response_model=List[ExpandedWord])
def words_by_tag(tag: str):
    return get_db().get_words_by_tag(tag)


# 8. Notes

@app.get("/notes", response_model=List[Note])
def list_notes(q: str = ""):
    return filter_notes(get_db().get_notes(), q)


@app.get("/notes/tree")
def notes_tree(q: str = ""):
    unfiled, tree, folder_paths = build_folder_tree(filter_notes(get_db().get_notes(), q))
    return {"unfiled": unfiled, "tree": tree, "folder_paths": folder_paths}


@app.post("/notes", response_model=Note)
def create_note(request: NoteCreate):
    if not request.title.strip():
        raise HTTPException(400, "Title is required.")
    return get_db().create_note(
        request.title,
        folder_path=request.folder_path,
        editor_type=request.editor_type,
        notebook_book_id=request.notebook_book_id,
    )


@app.get("/notes/{note_id}", response_model=Note)
def get_note(note_id: int):
    note = get_db().get_note(note_id)
    if not note:
        raise HTTPException(404, "Note not found")
    return note


@app.put("/notes/{note_id}", response_model=Note)
def update_note(note_id: int, request: NoteUpdate):
    fields = request.model_dump(exclude_unset=True)
    check_title(fields)
    note = get_db().update_note(note_id, **fields)
    if not note:
        raise HTTPException(404, "Note not found")
    return note


@app.delete("/notes/{note_id}")
def delete_note(note_id: int):
    if not get_db().delete_note(note_id):
        raise HTTPException(404, "Note not found")
    return {"success": True}


@app.get("/notebooks", response_model=List[NotebookBook])
def list_notebooks():
    return get_db().get_notebook_books()


@app.post("/notebooks", response_model=NotebookBook)
def create_notebook(request: NotebookCreate):
    if not request.title.strip():
        raise HTTPException(400, "Title is required.")
    return get_db().create_notebook_book(request.title)


@app.put("/notebooks/{book_id}", response_model=NotebookBook)
def update_notebook(book_id: int, request: NotebookUpdate):
    fields = request.model_dump(exclude_unset=True)
    check_title(fields)
    book = get_db().update_notebook_book(book_id, **fields)
    if not book:
        raise HTTPException(404, "Notebook not found")
    return book


@app.delete("/notebooks/{book_id}")
def delete_notebook(book_id: int):
    if not get_db().delete_notebook_book(book_id):
        raise HTTPException(404, "Notebook not found")
    return {"success": True}


@app.get("/notebooks/{book_id}/pages", response_model=List[Note])
def notebook_pages(book_id: int):
    return get_db().get_book_pages(book_id)


# 9. Dashboard

@app.get("/dashboard", response_model=DashboardMetrics)
def dashboard():
    if not db:
        return DashboardMetrics()
    return db.get_dashboard_metrics()


# 10. Word Lookup Panel

@app.post("/lookup")
def lookup_add(request: WordRequest):
    added = lookup_queue.add_word(request.word)
    return {"added": added, "pending_count": lookup_queue.pending_count()}


@app.get("/lookup")
def lookup_state():
    return {"items": lookup_queue.snapshot(), "pending_count": lookup_queue.pending_count()}


@app.delete("/lookup")
def lookup_clear():
    lookup_queue.clear()
    return {"success": True}


@app.delete("/lookup/{word}")
def lookup_remove(word: str):
    if not lookup_queue.remove_word(word):
        raise HTTPException(404, "Word not in lookup panel")
    return {"success": True}


# 11. Read Aloud

@app.post("/speak")
def speak(request: SpeakRequest):
    if not request.text or not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")

    try:
        return {"audio_data": generate_audio(request.text)}
    except Exception as e:
        logger.error(f"Speak Error: {e}")
        raise HTTPException(500, str(e))
