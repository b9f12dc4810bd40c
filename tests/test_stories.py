import unittest
from unittest.mock import patch

from hellenika.gemini import GenerationError
from hellenika.models import StoryRequest, StorySentence
from hellenika.stories import (
    generate_greek_story,
    generate_story,
    generate_story_illustrations,
)

STORY_RESPONSE = {
    "sentences": [
        {
            "sentence": "ὁ ἵππος τρέχει.",
            "words": [
                {"word": "ὁ", "syntax_note": "article"},
                {"word": "ἵππος", "syntax_note": "subject"},
                {"word": "τρέχει.", "syntax_note": "main verb"},
            ],
            "detailed_syntax": {"translation": "The horse runs.", "breakdown": "..."},
        },
        {"sentence": "   ", "words": []},
        {
            "sentence": "ὁ παῖς γελᾷ.",
            "words": [{"word": "ὁ"}, {"word": "παῖς"}, {"word": "γελᾷ."}],
        },
    ]
}


def make_request(**overrides):
    data = {
        "level": "Beginner",
        "topic": "A horse race",
        "grammar_scope": "Present tense",
        "min_sentences": 2,
        "max_sentences": 3,
    }
    data.update(overrides)
    return StoryRequest(**data)


class TestGenerateGreekStory(unittest.TestCase):
    @patch("hellenika.stories.translit", side_effect=lambda text, lang, reversed: f"latin:{text}")
    @patch("hellenika.stories.call_gemini", return_value=STORY_RESPONSE)
    def test_sentences_are_transliterated_and_blank_ones_skipped(self, mock_gemini, mock_translit):
        sentences = generate_greek_story(make_request())

        self.assertEqual(len(sentences), 2)
        self.assertEqual(sentences[0].transliteration, "latin:ὁ ἵππος τρέχει.")
        self.assertEqual(sentences[0].detailed_syntax.translation, "The horse runs.")
        self.assertEqual(sentences[1].words[1].syntax_note, "")

        prompt = mock_gemini.call_args[0][0]
        self.assertIn("Topic: A horse race", prompt)
        self.assertIn("Between 2 and 3", prompt)

    @patch("hellenika.stories.translit", side_effect=RuntimeError("unsupported"))
    @patch("hellenika.stories.call_gemini", return_value=STORY_RESPONSE)
    def test_transliteration_failure_keeps_greek(self, mock_gemini, mock_translit):
        sentences = generate_greek_story(make_request())
        self.assertEqual(sentences[0].transliteration, "ὁ ἵππος τρέχει.")


class TestIllustrations(unittest.TestCase):
    @patch("hellenika.stories.generate_image")
    def test_each_illustration_references_the_previous_one(self, mock_image):
        mock_image.side_effect = ["data:image/png;base64,AAA", "data:image/png;base64,BBB"]
        sentences = [StorySentence(sentence="ὁ ἵππος τρέχει."), StorySentence(sentence="ὁ παῖς γελᾷ.")]

        illustrations = generate_story_illustrations(sentences)

        self.assertEqual(illustrations, ["data:image/png;base64,AAA", "data:image/png;base64,BBB"])
        first, second = mock_image.call_args_list
        self.assertIsNone(first.kwargs["reference_uri"])
        self.assertNotIn("previous image", first.args[0])
        self.assertEqual(second.kwargs["reference_uri"], "data:image/png;base64,AAA")
        self.assertIn("maintaining the characters and style from the previous image", second.args[0])
        self.assertIn("ὁ παῖς γελᾷ.", second.args[0])


class TestGenerateStory(unittest.TestCase):
    @patch("hellenika.stories.gloss_story", return_value={})
    @patch("hellenika.stories.generate_image", return_value="data:image/png;base64,AAA")
    @patch("hellenika.stories.call_gemini", return_value=STORY_RESPONSE)
    def test_full_story(self, mock_gemini, mock_image, mock_gloss):
        story = generate_story(make_request())

        self.assertEqual(len(story.sentences), 2)
        self.assertEqual(len(story.illustrations), 2)
        self.assertEqual(story.topic, "A horse race")
        self.assertEqual(story.level, "Beginner")
        mock_gloss.assert_called_once_with(story.sentences)

    @patch("hellenika.stories.gloss_story", return_value={})
    @patch("hellenika.stories.generate_image")
    @patch("hellenika.stories.call_gemini", return_value=STORY_RESPONSE)
    def test_without_illustrations(self, mock_gemini, mock_image, mock_gloss):
        story = generate_story(make_request(), illustrate=False)

        self.assertEqual(story.illustrations, [])
        mock_image.assert_not_called()

    @patch("hellenika.stories.gloss_story")
    @patch("hellenika.stories.call_gemini", return_value={"sentences": []})
    def test_empty_story_raises(self, mock_gemini, mock_gloss):
        with self.assertRaises(GenerationError):
            generate_story(make_request())
        mock_gloss.assert_not_called()


if __name__ == "__main__":
    unittest.main()
