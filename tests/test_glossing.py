import unittest
from unittest.mock import patch

from hellenika.glossing import (
    gloss_story,
    gloss_word,
    gloss_words,
    gloss_words_parallel,
    normalize_word,
    unique_story_words,
)
from hellenika.models import GlossEntry, StorySentence, WordNote


def entry(lemma):
    return GlossEntry(lemma=lemma, part_of_speech="Noun", definition=f"meaning of {lemma}")


def story(*sentences):
    return [
        StorySentence(sentence=" ".join(words), words=[WordNote(word=w) for w in words])
        for words in sentences
    ]


class TestNormalizeWord(unittest.TestCase):
    def test_strips_punctuation_and_lowercases(self):
        self.assertEqual(normalize_word("Λόγος,"), "λόγος")
        self.assertEqual(normalize_word("τρέχει."), "τρέχει")

    def test_greek_question_mark_and_ano_teleia(self):
        self.assertEqual(normalize_word("ποῦ;"), "ποῦ")
        self.assertEqual(normalize_word("ἔφη·"), "ἔφη")

    def test_punctuation_only_is_empty(self):
        self.assertEqual(normalize_word(" . "), "")


class TestGlossWord(unittest.TestCase):
    @patch("hellenika.glossing.call_gemini")
    def test_gloss_word_strips_punctuation_in_prompt(self, mock_gemini):
        mock_gemini.return_value = {
            "lemma": "λύω",
            "part_of_speech": "Verb",
            "definition": "to loosen",
            "morphology": "Verb, Pres, Act, Ind, 3rd, Sg",
        }

        result = gloss_word("λύει.")

        self.assertEqual(result.lemma, "λύω")
        prompt = mock_gemini.call_args[0][0]
        self.assertIn('"λύει"', prompt)

    @patch("hellenika.glossing.call_gemini")
    def test_gloss_words_empty_skips_model(self, mock_gemini):
        self.assertEqual(gloss_words([]), {})
        mock_gemini.assert_not_called()

    @patch("hellenika.glossing.call_gemini")
    def test_gloss_words_normalizes_keys_and_drops_bad_entries(self, mock_gemini):
        mock_gemini.return_value = {
            "Λόγος": {"lemma": "λόγος", "part_of_speech": "Noun", "definition": "word"},
            "ἵππος": {"lemma": "ἵππος"},
            "καί": "conjunction",
        }

        result = gloss_words(["λόγος", "ἵππος", "καί"])

        self.assertEqual(list(result), ["λόγος"])
        prompt = mock_gemini.call_args[0][0]
        self.assertIn("- ἵππος", prompt)


class TestGlossStory(unittest.TestCase):
    def test_unique_words_in_order(self):
        sentences = story(["Ὁ", "ἵππος", "τρέχει."], ["ὁ", "ἵππος,", "·"])
        self.assertEqual(unique_story_words(sentences), ["ὁ", "ἵππος", "τρέχει"])

    @patch("hellenika.glossing.gloss_words")
    def test_retries_only_missing_words(self, mock_gloss_words):
        mock_gloss_words.side_effect = [
            {"ὁ": entry("ὁ")},
            {"ἵππος": entry("ἵππος")},
        ]

        result = gloss_story(story(["ὁ", "ἵππος"]))

        self.assertEqual(set(result), {"ὁ", "ἵππος"})
        self.assertEqual(mock_gloss_words.call_count, 2)
        mock_gloss_words.assert_called_with(["ἵππος"])

    @patch("hellenika.glossing.gloss_words")
    def test_failed_attempt_retries_everything(self, mock_gloss_words):
        mock_gloss_words.side_effect = [
            RuntimeError("model overloaded"),
            {"ὁ": entry("ὁ"), "ἵππος": entry("ἵππος")},
        ]

        result = gloss_story(story(["ὁ", "ἵππος"]))

        self.assertEqual(len(result), 2)
        first_call, second_call = mock_gloss_words.call_args_list
        self.assertEqual(first_call[0][0], second_call[0][0])

    @patch("hellenika.glossing.gloss_words")
    def test_gives_up_after_max_retries(self, mock_gloss_words):
        mock_gloss_words.return_value = {}

        result = gloss_story(story(["ὁ", "ἵππος"]), max_retries=3)

        self.assertEqual(result, {})
        self.assertEqual(mock_gloss_words.call_count, 3)

    @patch("hellenika.glossing.gloss_words")
    def test_empty_story_does_not_call_model(self, mock_gloss_words):
        self.assertEqual(gloss_story([]), {})
        mock_gloss_words.assert_not_called()


class TestGlossWordsParallel(unittest.TestCase):
    @patch("hellenika.glossing.gloss_word")
    def test_fan_out_skips_failures(self, mock_gloss_word):
        def fake_gloss(word):
            if word == "κακός":
                raise RuntimeError("blocked")
            return entry(word)

        mock_gloss_word.side_effect = fake_gloss

        result = gloss_words_parallel(["Λόγος", "λόγος.", "κακός", "", "ἵππος"], workers=2)

        self.assertEqual(list(result), ["λόγος", "ἵππος"])
        self.assertEqual(mock_gloss_word.call_count, 3)


if __name__ == "__main__":
    unittest.main()
