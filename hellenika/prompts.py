"""
Prompt templates for every generation the application performs.

Templates are plain ``str.format`` strings; literal braces in the JSON
shape descriptions are doubled.
"""

STORY_PROMPT = """You are an expert in Ancient Greek language and literature. You are proficient in the Attic dialect from 5th-4th century BCE. Your task is to generate a story in Attic Greek based on the user's specifications.

Level: {level}
Topic: {topic}
Grammar Scope: {grammar_scope}
Number of sentences: Between {min_sentences} and {max_sentences}.

The story should be appropriate for the specified learner level and contain a total number of sentences within the specified range. Use vocabulary and grammatical structures that are suitable for the level and grammar scope. The story should be coherent and engaging.

For each sentence you generate, you MUST provide the following in the output:
1.  The full 'sentence' string in Ancient Greek.
2.  An array 'words', where each item has the 'word' and its concise 'syntax_note' explaining its specific grammatical role in the sentence (e.g., "subject of verb", "dative of means", "modifies noun"). Ensure the words in the 'words' array (including punctuation) reconstruct the 'sentence' exactly when joined with spaces.
3.  A 'detailed_syntax' object containing:
    a. A full 'translation' of the sentence into English.
    b. A detailed 'breakdown' of the sentence's syntax and semantics. This should be a clause-by-clause and word-by-word analysis.

Return a JSON object of the form:
{{"sentences": [{{"sentence": "...", "words": [{{"word": "...", "syntax_note": "..."}}], "detailed_syntax": {{"translation": "...", "breakdown": "..."}}}}]}}
"""

GLOSS_WORD_PROMPT = """You are an expert Ancient Greek lexicographer. For the given word "{word}", provide its dictionary form (lemma), its part of speech, a concise English definition, and a morphological analysis.

If the word is a verb, provide the principal parts as the lemma. If it's a noun or adjective, provide the nominative singular form.
The morphological analysis should be concise (e.g., "Noun, Nom, Sg, Masc" or "Verb, Pres, Act, Ind, 3rd, Sg").

Return a JSON object of the form:
{{"lemma": "...", "part_of_speech": "...", "definition": "...", "morphology": "..."}}
"""

GLOSS_WORDS_PROMPT = """You are an expert Ancient Greek lexicographer. For the given list of words, provide their dictionary form (lemma), part of speech, a concise English definition, and a morphological analysis.

Your response must be a JSON object that maps each word from the input array to its corresponding gloss data. The keys in the output map must be the normalized (lowercase, no punctuation) words.

For each word, provide:
1.  'lemma': The dictionary form (e.g., principal parts for verbs, nominative singular for nouns).
2.  'part_of_speech': The word's part of speech.
3.  'definition': A concise English definition.
4.  'morphology': A concise morphological analysis (e.g., "Noun, Nom, Sg, Masc").

Input Words:
{word_list}

Return a single JSON object. Ensure every word from the input list is a key in the output JSON.
"""

EXPAND_WORD_PROMPT = """You are an expert Ancient Greek lexicographer and grammarian. For the given word "{word}", provide a detailed analysis based on its part of speech. Your entire analysis must be in well-formatted Markdown. Use Markdown tables for paradigms.

**If the word is a VERB:**
1.  **Gloss**: Provide its dictionary form (lemma), part of speech, and a concise English definition.
2.  **Principal Parts**: Generate a Markdown table of its principal parts.
3.  **Full Conjugation**: Generate full conjugation paradigms in Markdown tables for all tenses and moods (Indicative, Subjunctive, Optative, Imperative), including participles and infinitives.
4.  **Etymology**: Provide a detailed etymology of the word.

**If the word is a PARTICIPLE:**
1.  **Identification**: Identify the verb it is derived from.
2.  **Principal Parts**: Generate a Markdown table of the source verb's principal parts.
3.  **Full Declension**: Generate the full declension paradigm for the participle in all genders, numbers, and cases, including translations for each form (e.g., "λύων - releasing (m. nom. sg.)"). Use a Markdown table.
4.  **Etymology**: Provide a detailed etymology of the source verb.
5.  **Usage**: Provide a detailed description of the participle's usage in a sentence.

**If the word is a NOUN:**
1.  **Gloss**: Provide its dictionary form (lemma), part of speech (including gender), and a concise English definition.
2.  **Full Declension**: Generate its full declension paradigm in a Markdown table.
3.  **Etymology**: Provide a detailed etymology of the word, including its root/stem.

**If the word is an ADJECTIVE:**
1.  **Gloss**: Provide its dictionary form (lemma) and a concise English definition.
2.  **Full Declension**: Generate its full declension paradigm for all genders in a Markdown table.
3.  **Etymology**: Provide a detailed etymology of the word, including its root/stem.
4.  **Usage**: Provide a detailed description of the adjective's usage in a sentence.

**If it is any OTHER type of word (e.g., preposition, adverb, conjunction):**
1.  **Description**: Describe the word and its function.
2.  **Etymology**: Provide a detailed etymology of the word, including its root/stem.
3.  **Usage**: Provide a detailed description of the word's usage in a sentence with examples.

Return a JSON object of the form:
{{"expansion": "<the Markdown analysis>", "lemma": "<dictionary form>"}}
"""

BOOK_PROMPT = """You are an expert in Ancient Greek language and literature. Your task is to generate a short book in Attic Greek based on the user's specifications. The book should be structured with a main title, a fictional author, and multiple pages.

Level: {level}
Topic: {topic}
Grammar Scope: {grammar_scope}
Number of Pages: {num_pages}

Instructions:
1.  Create a compelling 'title' for the entire book.
2.  Invent a plausible Ancient Greek 'author' name.
3.  Generate exactly {num_pages} pages.
4.  For each page, provide a 'page_number'.
5.  For each page, you may optionally provide a short 'title'.
6.  For each page, write AT LEAST TWO paragraphs. Each paragraph must have Greek 'text' and an English 'translation'.
7.  For each page, generate a 'main_illustrations' array containing exactly TWO objects with a detailed 'prompt' for generating full-color illustrations of key scenes on that page.
8.  For each page, identify 3-5 important vocabulary words. For each word, create a 'footnotes' entry with:
    a. The 'word' itself.
    b. A simple 'definition' for the word in Ancient Greek (define Greek with Greek).
    c. A short, simple 'illustration_prompt' for generating a small, minimalist, black and white sketch (e.g., "a running horse", "a small boat", "a tree").
9.  Ensure the vocabulary and grammar are suitable for the specified 'level' and 'grammar_scope'.
10. Do not include any image data. Illustrations are generated later.

Return the entire book as a single JSON object of the form:
{{"title": "...", "author": "...", "pages": [{{"page_number": 1, "title": "...", "paragraphs": [{{"text": "...", "translation": "..."}}], "main_illustrations": [{{"prompt": "..."}}], "footnotes": [{{"word": "...", "definition": "...", "illustration_prompt": "..."}}]}}]}}
"""

VOCAB_PAGE_PROMPT = """You are an expert in Ancient Greek language and literature. Your task is to generate a single page for a story designed to help a user memorize a list of vocabulary words.

**Instructions for Page {page_number}:**
- Learner Level: {level}
- Grammar Scope: {grammar_scope}
- **Core Vocabulary to Repeat:** {vocab_list}
{previous_block}
**Your Task:**
1.  Write the next page of the story. The page must contain at least two paragraphs.
2.  The primary goal is to **naturally and frequently repeat the words from the Core Vocabulary list**.
3.  If this is not the first page, continue the story from the "Previous Page Content". You should also try to re-use some important (non-core) vocabulary from the previous page to aid retention.
4.  The story must be engaging and coherent for the specified learner 'level' and 'grammar_scope'.
5.  For the generated page, provide:
    a. A 'page_number'.
    b. An optional 'title' for the page.
    c. An array of 'paragraphs', each with Greek 'text' and an English 'translation'.
    d. A 'main_illustrations' array with exactly TWO objects holding a detailed 'prompt' for full-color illustrations.
    e. A 'footnotes' array with 3-5 dictionary entries for key words on the page. Each entry needs a Greek 'word', a simple Greek 'definition', and a simple 'illustration_prompt'.

Return the page as a single JSON object of the form:
{{"page_number": {page_number}, "title": "...", "paragraphs": [{{"text": "...", "translation": "..."}}], "main_illustrations": [{{"prompt": "..."}}], "footnotes": [{{"word": "...", "definition": "...", "illustration_prompt": "..."}}]}}
"""

PREVIOUS_PAGE_BLOCK = """- **Previous Page Content (for context and continuity):**
  {previous_page_text}
"""

COVER_PROMPT = """Generate a book cover illustration for an Ancient Greek story.
Book Title: "{title}"
Theme: {topic}
Style: Ancient Greek pottery style, color illustration, dramatic and epic. Do not include any text on the cover."""

ILLUSTRATION_PROMPT = (
    'Generate an image that illustrates the following Ancient Greek sentence: "{sentence}". '
    "The illustration should be in color and suitable for a children's story."
)

CONTINUED_ILLUSTRATION_PROMPT = (
    "Generate an image that illustrates the following Ancient Greek sentence, "
    'maintaining the characters and style from the previous image: "{sentence}". '
    "The illustration should be in color and suitable for a children's story."
)

FOOTNOTE_ILLUSTRATION_PROMPT = (
    "A small, simple, minimalist, black and white icon-style sketch of: {prompt}."
)


def vocab_page_prompt(level, vocab_list, grammar_scope, page_number, previous_page_text=None):
    previous_block = ""
    if previous_page_text:
        previous_block = PREVIOUS_PAGE_BLOCK.format(previous_page_text=previous_page_text)
    return VOCAB_PAGE_PROMPT.format(
        level=level,
        vocab_list=vocab_list,
        grammar_scope=grammar_scope,
        page_number=page_number,
        previous_block=previous_block,
    )


def gloss_words_prompt(words):
    word_list = "\n".join(f"- {w}" for w in words)
    return GLOSS_WORDS_PROMPT.format(word_list=word_list)


def illustration_prompt(sentence, continued=False):
    template = CONTINUED_ILLUSTRATION_PROMPT if continued else ILLUSTRATION_PROMPT
    return template.format(sentence=sentence)
