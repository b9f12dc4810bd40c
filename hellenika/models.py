from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Dict, Optional, Literal

Level = Literal["Beginner", "Intermediate", "Advanced"]
EditorType = Literal["default", "math"]
BookKind = Literal["book", "vocab"]


def _check_length(value: str, label: str) -> str:
    value = value.strip()
    if len(value) < 3:
        raise ValueError(f"{label} must be at least 3 characters long.")
    if len(value) > 100:
        raise ValueError(f"{label} must be 100 characters or less.")
    return value


# --- Form Requests ---

class StoryRequest(BaseModel):
    level: Level
    topic: str
    grammar_scope: str
    min_sentences: int = Field(3, ge=1)
    max_sentences: int = Field(5, ge=1)

    @field_validator("topic")
    @classmethod
    def check_topic(cls, v):
        return _check_length(v, "Topic")

    @field_validator("grammar_scope")
    @classmethod
    def check_grammar_scope(cls, v):
        return _check_length(v, "Grammar scope")

    @model_validator(mode="after")
    def check_sentence_range(self):
        if self.min_sentences > self.max_sentences:
            raise ValueError("Min sentences must be less than or equal to max sentences.")
        return self


class BookRequest(BaseModel):
    level: Level
    topic: str
    grammar_scope: str
    num_pages: int = Field(3, ge=1, le=10)

    @field_validator("topic")
    @classmethod
    def check_topic(cls, v):
        return _check_length(v, "Topic")

    @field_validator("grammar_scope")
    @classmethod
    def check_grammar_scope(cls, v):
        return _check_length(v, "Grammar scope")


class VocabBookRequest(BaseModel):
    level: Level
    vocab_list: str  # comma-separated
    grammar_scope: str
    num_pages: int = Field(3, ge=1, le=10)

    @field_validator("vocab_list")
    @classmethod
    def check_vocab_list(cls, v):
        if not [w for w in v.split(",") if w.strip()]:
            raise ValueError("Vocabulary list cannot be empty.")
        return v.strip()

    @field_validator("grammar_scope")
    @classmethod
    def check_grammar_scope(cls, v):
        return _check_length(v, "Grammar scope")


# --- Stories ---

class WordNote(BaseModel):
    word: str
    syntax_note: str = ""


class DetailedSyntax(BaseModel):
    translation: str = ""
    breakdown: str = ""


class StorySentence(BaseModel):
    sentence: str
    words: List[WordNote] = []
    detailed_syntax: DetailedSyntax = DetailedSyntax()
    transliteration: Optional[str] = None


class GlossEntry(BaseModel):
    lemma: str
    part_of_speech: str
    definition: str
    morphology: Optional[str] = None


class Story(BaseModel):
    sentences: List[StorySentence]
    illustrations: List[str] = []
    glosses: Dict[str, GlossEntry] = {}
    topic: Optional[str] = None
    level: Optional[str] = None
    grammar_scope: Optional[str] = None


class SavedStory(Story):
    id: int
    created_at: str


class StoryListItem(BaseModel):
    id: int
    topic: Optional[str] = None
    level: Optional[str] = None
    created_at: str


# --- Books ---

class Paragraph(BaseModel):
    text: str
    translation: str = ""


class PageIllustration(BaseModel):
    prompt: str
    illustration_uri: Optional[str] = None


class Footnote(BaseModel):
    word: str
    definition: str = ""
    illustration_prompt: str = ""
    illustration_uri: Optional[str] = None


class Page(BaseModel):
    page_number: int
    title: Optional[str] = None
    paragraphs: List[Paragraph] = []
    main_illustrations: List[PageIllustration] = []
    footnotes: List[Footnote] = []


class Book(BaseModel):
    title: str
    author: str
    pages: List[Page]
    cover_illustration_uri: Optional[str] = None
    topic: Optional[str] = None
    level: Optional[str] = None
    grammar_scope: Optional[str] = None
    kind: BookKind = "book"


class SavedBook(Book):
    id: int
    created_at: str


class BookListItem(BaseModel):
    id: int
    title: str
    kind: BookKind
    created_at: str


# --- Word Expansion ---

class ExpandedWord(BaseModel):
    id: int
    created_at: str
    word: str
    expansion: str
    language: str = "greek"
    lemma: Optional[str] = None
    tags: List[str] = []


class ExpandedWordListItem(BaseModel):
    id: int
    word: str
    lemma: Optional[str] = None


# --- Notes ---

class Note(BaseModel):
    id: int
    created_at: str
    title: str
    content: Optional[str] = None
    tags: List[str] = []
    is_pinned: bool = False
    folder_path: Optional[str] = None
    editor_type: EditorType = "default"
    notebook_book_id: Optional[int] = None
    page_order: Optional[int] = None


class NotebookBook(BaseModel):
    id: int
    created_at: str
    title: str
    is_pinned: bool = False


# --- Dashboard ---

class StoriesByLevel(BaseModel):
    level: str
    count: int


class DashboardMetrics(BaseModel):
    story_count: int = 0
    word_count: int = 0
    note_count: int = 0
    stories_by_level: List[StoriesByLevel] = []
