import functools
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone

from hellenika.config import (
    get_db_path,
    LEVELS,
    EXPANSION_LANGUAGE,
    STORY_TABLE,
    BOOKS_TABLE,
    EXPANDED_WORDS_TABLE,
    NOTES_TABLE,
    NOTEBOOK_BOOKS_TABLE,
)

logger = logging.getLogger(__name__)

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {STORY_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    topic TEXT,
    level TEXT,
    grammar_scope TEXT,
    sentences_json TEXT NOT NULL,
    illustrations_json TEXT,
    glosses_json TEXT
);
CREATE TABLE IF NOT EXISTS {BOOKS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    kind TEXT NOT NULL DEFAULT 'book',
    title TEXT NOT NULL,
    author TEXT,
    topic TEXT,
    level TEXT,
    grammar_scope TEXT,
    cover_illustration_uri TEXT,
    pages_json TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS {EXPANDED_WORDS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    word TEXT NOT NULL,
    expansion TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT '{EXPANSION_LANGUAGE}',
    lemma TEXT,
    tags_json TEXT
);
CREATE TABLE IF NOT EXISTS {NOTEBOOK_BOOKS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    title TEXT NOT NULL,
    is_pinned INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS {NOTES_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT,
    tags_json TEXT,
    is_pinned INTEGER NOT NULL DEFAULT 0,
    folder_path TEXT,
    editor_type TEXT,
    notebook_book_id INTEGER,
    page_order INTEGER,
    FOREIGN KEY(notebook_book_id) REFERENCES {NOTEBOOK_BOOKS_TABLE}(id)
);
"""

NOTE_COLUMNS = (
    "title",
    "content",
    "tags",
    "is_pinned",
    "folder_path",
    "editor_type",
    "notebook_book_id",
    "page_order",
)
NOTEBOOK_COLUMNS = ("title", "is_pinned")
NOT_NULL_COLUMNS = ("title", "is_pinned")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _loads(text, default):
    if not text:
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return default


def _lower(value):
    # sqlite's LOWER() only folds ASCII; Greek needs Python's
    return value.lower() if isinstance(value, str) else value


def _clean_updates(fields, columns):
    # Known columns only; a None for a NOT NULL column leaves it unchanged
    return {
        k: v for k, v in fields.items()
        if k in columns and not (v is None and k in NOT_NULL_COLUMNS)
    }


def _locked(method):
    """Serializes writes on the shared connection across request and lookup threads."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._write_lock:
            return method(self, *args, **kwargs)
    return wrapper


class DatabaseManager:
    def __init__(self, db_path=None):
        self.db_path = db_path or get_db_path()
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._write_lock = threading.RLock()
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function("PY_LOWER", 1, _lower, deterministic=True)
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    # --- Row Mapping ---

    def _story_row(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "topic": row["topic"],
            "level": row["level"],
            "grammar_scope": row["grammar_scope"],
            "sentences": _loads(row["sentences_json"], []),
            "illustrations": _loads(row["illustrations_json"], []),
            "glosses": _loads(row["glosses_json"], {}),
        }

    def _book_row(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "kind": row["kind"],
            "title": row["title"],
            "author": row["author"],
            "topic": row["topic"],
            "level": row["level"],
            "grammar_scope": row["grammar_scope"],
            "cover_illustration_uri": row["cover_illustration_uri"],
            "pages": _loads(row["pages_json"], []),
        }

    def _word_row(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "word": row["word"],
            "expansion": row["expansion"],
            "language": row["language"],
            "lemma": row["lemma"],
            "tags": _loads(row["tags_json"], []),
        }

    def _note_row(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "title": row["title"],
            "content": row["content"],
            "tags": _loads(row["tags_json"], []),
            "is_pinned": bool(row["is_pinned"]),
            "folder_path": row["folder_path"],
            "editor_type": row["editor_type"] or "default",
            "notebook_book_id": row["notebook_book_id"],
            "page_order": row["page_order"],
        }

    def _notebook_row(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "title": row["title"],
            "is_pinned": bool(row["is_pinned"]),
        }

    # --- Stories ---

    @_locked
    def save_story(self, story: dict) -> int:
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            INSERT INTO {STORY_TABLE}
                (created_at, topic, level, grammar_scope, sentences_json, illustrations_json, glosses_json)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _now(),
                story.get("topic"),
                story.get("level"),
                story.get("grammar_scope"),
                json.dumps(story.get("sentences", []), ensure_ascii=False),
                json.dumps(story.get("illustrations", [])),
                json.dumps(story.get("glosses", {}), ensure_ascii=False),
            ),
        )
        self.conn.commit()
        return cursor.lastrowid

    def list_stories(self) -> list:
        try:
            rows = self.conn.execute(
                f"SELECT id, topic, level, created_at FROM {STORY_TABLE} ORDER BY created_at DESC, id DESC"
            ).fetchall()
            return [dict(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in list_stories: {e}")
            return []

    def get_story(self, story_id: int):
        try:
            row = self.conn.execute(
                f"SELECT * FROM {STORY_TABLE} WHERE id = ?", (story_id,)
            ).fetchone()
            return self._story_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_story for {story_id}: {e}")
            return None

    @_locked
    def delete_story(self, story_id: int) -> bool:
        cursor = self.conn.execute(f"DELETE FROM {STORY_TABLE} WHERE id = ?", (story_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    # --- Books ---

    @_locked
    def save_book(self, book: dict) -> int:
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            INSERT INTO {BOOKS_TABLE}
                (created_at, kind, title, author, topic, level, grammar_scope, cover_illustration_uri, pages_json)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _now(),
                book.get("kind", "book"),
                book["title"],
                book.get("author"),
                book.get("topic"),
                book.get("level"),
                book.get("grammar_scope"),
                book.get("cover_illustration_uri"),
                json.dumps(book.get("pages", []), ensure_ascii=False),
            ),
        )
        self.conn.commit()
        return cursor.lastrowid

    def list_books(self, kind: str = None) -> list:
        try:
            query = f"SELECT id, title, kind, created_at FROM {BOOKS_TABLE}"
            params = ()
            if kind:
                query += " WHERE kind = ?"
                params = (kind,)
            query += " ORDER BY created_at DESC, id DESC"
            return [dict(r) for r in self.conn.execute(query, params).fetchall()]
        except sqlite3.Error as e:
            logger.error(f"DB Error in list_books: {e}")
            return []

    def get_book(self, book_id: int):
        try:
            row = self.conn.execute(
                f"SELECT * FROM {BOOKS_TABLE} WHERE id = ?", (book_id,)
            ).fetchone()
            return self._book_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_book for {book_id}: {e}")
            return None

    @_locked
    def update_book_pages(self, book_id: int, pages: list) -> bool:
        cursor = self.conn.execute(
            f"UPDATE {BOOKS_TABLE} SET pages_json = ? WHERE id = ?",
            (json.dumps(pages, ensure_ascii=False), book_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    @_locked
    def delete_book(self, book_id: int) -> bool:
        cursor = self.conn.execute(f"DELETE FROM {BOOKS_TABLE} WHERE id = ?", (book_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    # --- Expanded Words ---

    @_locked
    def insert_expanded_word(self, word: str, expansion: str, lemma: str = None,
                             language: str = EXPANSION_LANGUAGE) -> dict:
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            INSERT INTO {EXPANDED_WORDS_TABLE} (created_at, word, expansion, language, lemma, tags_json)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (_now(), word, expansion, language, lemma, json.dumps([])),
        )
        self.conn.commit()
        return self.get_expanded_word(cursor.lastrowid)

    @_locked
    def update_expansion(self, word_id: int, expansion: str):
        cursor = self.conn.execute(
            f"UPDATE {EXPANDED_WORDS_TABLE} SET expansion = ? WHERE id = ?",
            (expansion, word_id),
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get_expanded_word(word_id)

    def get_expanded_word(self, word_id: int):
        try:
            row = self.conn.execute(
                f"SELECT * FROM {EXPANDED_WORDS_TABLE} WHERE id = ?", (word_id,)
            ).fetchone()
            return self._word_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_expanded_word for {word_id}: {e}")
            return None

    def list_expanded_words(self) -> list:
        try:
            rows = self.conn.execute(
                f"""
                SELECT id, word, lemma FROM {EXPANDED_WORDS_TABLE}
                WHERE language = ? AND word != ''
                ORDER BY word ASC
                """,
                (EXPANSION_LANGUAGE,),
            ).fetchall()
            return [dict(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in list_expanded_words: {e}")
            return []

    def find_expansions_containing(self, term: str) -> list:
        """Full rows whose expansion contains term, case-insensitively."""
        if not term:
            return []
        try:
            rows = self.conn.execute(
                f"""
                SELECT * FROM {EXPANDED_WORDS_TABLE}
                WHERE language = ? AND word != ''
                AND instr(PY_LOWER(expansion), PY_LOWER(?)) > 0
                ORDER BY word ASC
                """,
                (EXPANSION_LANGUAGE, term),
            ).fetchall()
            return [self._word_row(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in find_expansions_containing for '{term}': {e}")
            return []

    def search_expanded_words(self, term: str) -> list:
        return [
            {"id": w["id"], "word": w["word"], "lemma": w["lemma"]}
            for w in self.find_expansions_containing(term)
        ]

    def all_expanded_words(self) -> list:
        try:
            rows = self.conn.execute(
                f"SELECT * FROM {EXPANDED_WORDS_TABLE} WHERE language = ? ORDER BY word ASC",
                (EXPANSION_LANGUAGE,),
            ).fetchall()
            return [self._word_row(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in all_expanded_words: {e}")
            return []

    # --- Tags ---

    @_locked
    def _set_tags(self, word_id: int, tags: list):
        self.conn.execute(
            f"UPDATE {EXPANDED_WORDS_TABLE} SET tags_json = ? WHERE id = ?",
            (json.dumps(tags, ensure_ascii=False), word_id),
        )
        self.conn.commit()
        return self.get_expanded_word(word_id)

    def get_all_tags(self) -> list:
        tags = set()
        for word in self.all_expanded_words():
            for tag in word["tags"] or []:
                name = (tag or "").strip()
                if name:
                    tags.add(name)
        return sorted(tags)

    @_locked
    def add_tag(self, word_id: int, tag: str):
        clean = (tag or "").strip()
        if not clean:
            raise ValueError("Tag cannot be empty.")
        word = self.get_expanded_word(word_id)
        if not word:
            return None
        current = word["tags"] or []
        if clean in current:
            return word
        return self._set_tags(word_id, current + [clean])

    @_locked
    def remove_tag(self, word_id: int, tag: str):
        clean = (tag or "").strip()
        if not clean:
            raise ValueError("Tag cannot be empty.")
        word = self.get_expanded_word(word_id)
        if not word:
            return None
        return self._set_tags(word_id, [t for t in word["tags"] or [] if t != clean])

    @_locked
    def add_tag_bulk(self, word_ids: list, tag: str) -> int:
        clean = (tag or "").strip()
        if not clean:
            raise ValueError("Tag cannot be empty.")
        updated = 0
        for word_id in word_ids or []:
            if self.add_tag(word_id, clean):
                updated += 1
        return updated

    def get_words_by_tag(self, tag: str) -> list:
        clean = (tag or "").strip()
        if not clean:
            return []
        return [w for w in self.all_expanded_words() if clean in (w["tags"] or [])]

    # --- Notes ---

    def get_notes(self) -> list:
        try:
            rows = self.conn.execute(
                f"""
                SELECT * FROM {NOTES_TABLE}
                WHERE notebook_book_id IS NULL
                ORDER BY is_pinned DESC, created_at DESC, id DESC
                """
            ).fetchall()
            return [self._note_row(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_notes: {e}")
            return []

    def get_note(self, note_id: int):
        try:
            row = self.conn.execute(
                f"SELECT * FROM {NOTES_TABLE} WHERE id = ?", (note_id,)
            ).fetchone()
            return self._note_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_note for {note_id}: {e}")
            return None

    @_locked
    def create_note(self, title: str, folder_path: str = None,
                    editor_type: str = "default", notebook_book_id: int = None) -> dict:
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            INSERT INTO {NOTES_TABLE}
                (created_at, title, content, tags_json, folder_path, editor_type, notebook_book_id)
            VALUES (?, ?, '', '[]', ?, ?, ?)
            """,
            (_now(), title, folder_path, editor_type, notebook_book_id),
        )
        self.conn.commit()
        return self.get_note(cursor.lastrowid)

    @_locked
    def update_note(self, note_id: int, **fields):
        updates = _clean_updates(fields, NOTE_COLUMNS)
        if not updates:
            return self.get_note(note_id)

        assignments, params = [], []
        for key, value in updates.items():
            if key == "tags":
                assignments.append("tags_json = ?")
                params.append(json.dumps(value or [], ensure_ascii=False))
            elif key == "is_pinned":
                assignments.append("is_pinned = ?")
                params.append(1 if value else 0)
            else:
                assignments.append(f"{key} = ?")
                params.append(value)
        params.append(note_id)

        self.conn.execute(
            f"UPDATE {NOTES_TABLE} SET {', '.join(assignments)} WHERE id = ?", params
        )
        self.conn.commit()
        return self.get_note(note_id)

    @_locked
    def delete_note(self, note_id: int) -> bool:
        cursor = self.conn.execute(f"DELETE FROM {NOTES_TABLE} WHERE id = ?", (note_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    # --- Notebook Books ---

    def get_notebook_books(self) -> list:
        try:
            rows = self.conn.execute(
                f"SELECT * FROM {NOTEBOOK_BOOKS_TABLE} ORDER BY is_pinned DESC, created_at DESC, id DESC"
            ).fetchall()
            return [self._notebook_row(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_notebook_books: {e}")
            return []

    def get_notebook_book(self, book_id: int):
        try:
            row = self.conn.execute(
                f"SELECT * FROM {NOTEBOOK_BOOKS_TABLE} WHERE id = ?", (book_id,)
            ).fetchone()
            return self._notebook_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_notebook_book for {book_id}: {e}")
            return None

    @_locked
    def create_notebook_book(self, title: str) -> dict:
        cursor = self.conn.cursor()
        cursor.execute(
            f"INSERT INTO {NOTEBOOK_BOOKS_TABLE} (created_at, title) VALUES (?, ?)",
            (_now(), title),
        )
        self.conn.commit()
        return self.get_notebook_book(cursor.lastrowid)

    @_locked
    def update_notebook_book(self, book_id: int, **fields):
        updates = _clean_updates(fields, NOTEBOOK_COLUMNS)
        if updates:
            if "is_pinned" in updates:
                updates["is_pinned"] = 1 if updates["is_pinned"] else 0
            assignments = ", ".join(f"{k} = ?" for k in updates)
            self.conn.execute(
                f"UPDATE {NOTEBOOK_BOOKS_TABLE} SET {assignments} WHERE id = ?",
                list(updates.values()) + [book_id],
            )
            self.conn.commit()
        return self.get_notebook_book(book_id)

    def get_book_pages(self, book_id: int) -> list:
        try:
            rows = self.conn.execute(
                f"""
                SELECT * FROM {NOTES_TABLE}
                WHERE notebook_book_id = ?
                ORDER BY page_order IS NULL, page_order ASC, created_at ASC, id ASC
                """,
                (book_id,),
            ).fetchall()
            return [self._note_row(r) for r in rows]
        except sqlite3.Error as e:
            logger.error(f"DB Error in get_book_pages for {book_id}: {e}")
            return []

    @_locked
    def delete_notebook_book(self, book_id: int) -> bool:
        # Pages go first so no note is left pointing at a missing book
        self.conn.execute(f"DELETE FROM {NOTES_TABLE} WHERE notebook_book_id = ?", (book_id,))
        cursor = self.conn.execute(
            f"DELETE FROM {NOTEBOOK_BOOKS_TABLE} WHERE id = ?", (book_id,)
        )
        self.conn.commit()
        return cursor.rowcount > 0

    # --- Dashboard ---

    def get_dashboard_metrics(self) -> dict:
        empty = {"story_count": 0, "word_count": 0, "note_count": 0, "stories_by_level": []}
        try:
            story_count = self.conn.execute(f"SELECT COUNT(*) FROM {STORY_TABLE}").fetchone()[0]
            word_count = self.conn.execute(
                f"SELECT COUNT(*) FROM {EXPANDED_WORDS_TABLE}"
            ).fetchone()[0]
            note_count = self.conn.execute(f"SELECT COUNT(*) FROM {NOTES_TABLE}").fetchone()[0]
            level_rows = self.conn.execute(f"SELECT level FROM {STORY_TABLE}").fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error fetching dashboard metrics: {e}")
            return empty

        level_counts = {level: 0 for level in LEVELS}
        for row in level_rows:
            if row["level"] in level_counts:
                level_counts[row["level"]] += 1

        return {
            "story_count": story_count,
            "word_count": word_count,
            "note_count": note_count,
            "stories_by_level": [
                {"level": level, "count": count} for level, count in level_counts.items()
            ],
        }

    def close(self):
        self.conn.close()
