import os
from pathlib import Path

# Define the Project Root
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / ".env"

# Data Paths
DATA_DIR = BASE_DIR / "data"
PROCESSED_DIR = DATA_DIR / "processed"

PROCESSED_DIR.mkdir(parents=True, exist_ok=True)

# 1. Storage
DEFAULT_DB_PATH = PROCESSED_DIR / "hellenika.db"


def get_db_path() -> Path:
    override = os.environ.get("HELLENIKA_DB_PATH")
    return Path(override) if override else DEFAULT_DB_PATH


STORY_TABLE = "comic_stories"
BOOKS_TABLE = "books"
EXPANDED_WORDS_TABLE = "expanded_words"
NOTES_TABLE = "notes"
NOTEBOOK_BOOKS_TABLE = "notebook_books"

# 2. Models
TEXT_MODEL = os.environ.get("HELLENIKA_TEXT_MODEL", "gemini-2.5-flash")
# Only the image-generation preview model returns inline images.
IMAGE_MODEL = os.environ.get(
    "HELLENIKA_IMAGE_MODEL", "gemini-2.0-flash-preview-image-generation"
)

# 3. Pedagogy
LEVELS = ("Beginner", "Intermediate", "Advanced")
EXPANSION_LANGUAGE = "greek"
VOCAB_BOOK_AUTHOR = "Μνημονικός (Mnemonikos)"

# 4. Batching
GLOSS_MAX_RETRIES = 3
GLOSS_WORKERS = 4
LOOKUP_BATCH_SIZE = 1  # expansion results are matched back to a single word
LOOKUP_POLL_SECONDS = 2.0

# 5. Audio
ELEVENLABS_VOICE_ID = os.environ.get("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")
ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"
