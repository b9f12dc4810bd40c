import logging
import threading

from hellenika.config import LOOKUP_BATCH_SIZE, LOOKUP_POLL_SECONDS
from hellenika.glossing import normalize_word

logger = logging.getLogger(__name__)

PENDING = "pending"
LOADING = "loading"
READY = "ready"
ERROR = "error"


class WordLookupQueue:
    """
    Queue of words waiting for an expansion.

    Words are added as pending; each call to process_queue moves one batch
    through the expand callable, which takes a comma-separated string and
    returns a list of expanded-word dicts. run() polls on a fixed interval.
    """

    def __init__(self, expand, batch_size=LOOKUP_BATCH_SIZE):
        self.expand = expand
        self.batch_size = batch_size
        self.items = {}
        self.is_processing = False
        self._lock = threading.Lock()

    def add_word(self, word: str) -> bool:
        key = normalize_word(word)
        if not key:
            return False
        with self._lock:
            if key in self.items:
                logger.info(f"'{key}' is already in the lookup panel")
                return False
            self.items[key] = {"word": key, "status": PENDING}
        return True

    def remove_word(self, word: str) -> bool:
        with self._lock:
            return self.items.pop(normalize_word(word), None) is not None

    def clear(self):
        with self._lock:
            self.items = {}

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for i in self.items.values() if i["status"] in (PENDING, LOADING))

    def snapshot(self) -> dict:
        with self._lock:
            return {k: dict(v) for k, v in self.items.items()}

    def _mark_error(self, batch, message):
        with self._lock:
            for key in batch:
                item = self.items.get(key)
                if item and item["status"] == LOADING:
                    item["status"] = ERROR
                    item["error"] = message

    def _match_key(self, returned_word, batch):
        key = normalize_word(returned_word)
        if key in self.items:
            return key
        for existing in self.items:
            if normalize_word(existing) == key:
                return existing
        # A stored form may come back under its lemma; with one word per batch it belongs to that word
        return batch[0]

    def process_queue(self) -> bool:
        """Expands one batch of pending words. Returns False when there was nothing to do."""
        with self._lock:
            if self.is_processing:
                return False
            pending = [k for k, v in self.items.items() if v["status"] == PENDING]
            if not pending:
                return False
            self.is_processing = True
            batch = pending[: self.batch_size]
            for key in batch:
                self.items[key]["status"] = LOADING

        try:
            result = self.expand(",".join(batch))
            if not result:
                logger.warning(f"Word expansion returned no data for batch: {batch}")
                self._mark_error(batch, "No expansion data returned.")
                return True

            with self._lock:
                for expanded in result:
                    key = self._match_key(str(expanded.get("word", "")), batch)
                    item = self.items.get(key)
                    if item:
                        item["status"] = READY
                        item["expansion"] = expanded.get("expansion", "")
                        item.pop("error", None)
            logger.info(f"Expansion ready for: {', '.join(e.get('word', '') for e in result)}")
            self._mark_error(batch, "No expansion returned for this word.")
        except Exception as e:
            logger.error(f"Failed to process word lookup batch {batch}: {e}")
            self._mark_error(batch, str(e) or "An unexpected error occurred.")
        finally:
            with self._lock:
                self.is_processing = False
        return True

    def run(self, stop_event: threading.Event, interval: float = LOOKUP_POLL_SECONDS):
        """Polls the queue every interval seconds until stop_event is set."""
        while not stop_event.wait(interval):
            self.process_queue()
