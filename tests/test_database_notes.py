import unittest
import sys
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Adjust sys.path to include the project root
current_dir = Path(__file__).resolve().parent
sys.path.append(str(current_dir.parent))

from hellenika.database import DatabaseManager


class TestNotes(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(Path(self.temp_dir.name) / "notes.db")

    def tearDown(self):
        self.db.close()
        self.temp_dir.cleanup()

    def test_create_note_defaults(self):
        note = self.db.create_note("Aorist endings")

        self.assertEqual(note["title"], "Aorist endings")
        self.assertEqual(note["content"], "")
        self.assertEqual(note["tags"], [])
        self.assertFalse(note["is_pinned"])
        self.assertEqual(note["editor_type"], "default")
        self.assertIsNone(note["notebook_book_id"])

    def test_missing_editor_type_reads_as_default(self):
        note = self.db.create_note("Legacy", editor_type=None)
        self.assertEqual(self.db.get_note(note["id"])["editor_type"], "default")

    def test_get_notes_pinned_first_then_newest(self):
        first = self.db.create_note("first")
        self.db.create_note("second")
        self.db.create_note("third")
        self.db.update_note(first["id"], is_pinned=True)

        titles = [n["title"] for n in self.db.get_notes()]
        self.assertEqual(titles, ["first", "third", "second"])
        self.assertTrue(self.db.get_note(first["id"])["is_pinned"])

    def test_get_notes_excludes_notebook_pages(self):
        book = self.db.create_notebook_book("Homer")
        self.db.create_note("Page 1", notebook_book_id=book["id"])
        self.db.create_note("Loose note")

        self.assertEqual([n["title"] for n in self.db.get_notes()], ["Loose note"])

    def test_update_note_ignores_unknown_fields(self):
        note = self.db.create_note("Participles")
        updated = self.db.update_note(
            note["id"], content="λύων", tags=["verbs"], id=999, created_at="never"
        )

        self.assertEqual(updated["id"], note["id"])
        self.assertEqual(updated["created_at"], note["created_at"])
        self.assertEqual(updated["content"], "λύων")
        self.assertEqual(updated["tags"], ["verbs"])

    def test_null_title_leaves_title_unchanged(self):
        note = self.db.create_note("Optative")
        updated = self.db.update_note(note["id"], title=None, is_pinned=None, content="εἴην")

        self.assertEqual(updated["title"], "Optative")
        self.assertFalse(updated["is_pinned"])
        self.assertEqual(updated["content"], "εἴην")

    def test_delete_note(self):
        note = self.db.create_note("Temporary")
        self.assertTrue(self.db.delete_note(note["id"]))
        self.assertIsNone(self.db.get_note(note["id"]))
        self.assertFalse(self.db.delete_note(note["id"]))


class TestNotebookBooks(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(Path(self.temp_dir.name) / "notebooks.db")

    def tearDown(self):
        self.db.close()
        self.temp_dir.cleanup()

    def test_pages_ordered_by_page_order(self):
        book = self.db.create_notebook_book("Iliad notes")
        late = self.db.create_note("Book II", notebook_book_id=book["id"])
        early = self.db.create_note("Book I", notebook_book_id=book["id"])
        self.db.update_note(late["id"], page_order=2)
        self.db.update_note(early["id"], page_order=1)

        pages = self.db.get_book_pages(book["id"])
        self.assertEqual([p["title"] for p in pages], ["Book I", "Book II"])

    def test_notebooks_pinned_first(self):
        a = self.db.create_notebook_book("A")
        self.db.create_notebook_book("B")
        self.db.update_notebook_book(a["id"], is_pinned=True)

        titles = [b["title"] for b in self.db.get_notebook_books()]
        self.assertEqual(titles, ["A", "B"])

    def test_null_title_leaves_notebook_unchanged(self):
        book = self.db.create_notebook_book("Odyssey notes")
        updated = self.db.update_notebook_book(book["id"], title=None, is_pinned=True)

        self.assertEqual(updated["title"], "Odyssey notes")
        self.assertTrue(updated["is_pinned"])

    def test_delete_notebook_removes_pages(self):
        book = self.db.create_notebook_book("Odyssey notes")
        page = self.db.create_note("Book IX", notebook_book_id=book["id"])

        self.assertTrue(self.db.delete_notebook_book(book["id"]))
        self.assertIsNone(self.db.get_notebook_book(book["id"]))
        self.assertIsNone(self.db.get_note(page["id"]))



class TestConcurrentWrites(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(Path(self.temp_dir.name) / "threads.db")

    def tearDown(self):
        self.db.close()
        self.temp_dir.cleanup()

    def test_writes_from_many_threads(self):
        def write(index):
            book = self.db.create_notebook_book(f"Book {index}")
            self.db.create_note(f"Page {index}", notebook_book_id=book["id"])
            self.db.create_note(f"Loose {index}")
            return self.db.delete_notebook_book(book["id"])

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(write, range(40)))

        self.assertTrue(all(results))
        self.assertEqual(self.db.get_notebook_books(), [])
        self.assertEqual(len(self.db.get_notes()), 40)
        count = self.db.conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]
        self.assertEqual(count, 40)

    def test_write_lock_is_reentrant(self):
        word = self.db.insert_expanded_word("λόγος", "word")
        with self.db._write_lock:
            self.assertEqual(self.db.add_tag(word["id"], "nouns")["tags"], ["nouns"])


if __name__ == "__main__":
    unittest.main()
