import sys
from pathlib import Path

# Add project root to Python Path
ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.append(str(ROOT_DIR))

import streamlit as st
import pandas as pd
from dotenv import load_dotenv
from pydantic import ValidationError

from hellenika.config import ENV_FILE, LEVELS
from hellenika.database import DatabaseManager
from hellenika.models import StoryRequest, BookRequest, VocabBookRequest
from hellenika.stories import generate_story
from hellenika.books import generate_book, generate_vocab_memorize_book
from hellenika.expansion import generate_and_save_word_expansion
from hellenika.notes import build_folder_tree, filter_notes
from hellenika.export import expanded_words_to_frame

# Load Env
load_dotenv(dotenv_path=ENV_FILE)

# Page Config
st.set_page_config(page_title="Hellenika Komiks", layout="wide", page_icon="🏺")

st.title("🏺 Hellenika Komiks")


@st.cache_resource
def get_db():
    return DatabaseManager()


db = get_db()


def show_validation_errors(error: ValidationError):
    for err in error.errors():
        field = ".".join(str(p) for p in err["loc"]) or "form"
        st.error(f"{field}: {err['msg']}")


def show_book(book):
    if book.cover_illustration_uri:
        st.image(book.cover_illustration_uri, width=320)
    st.subheader(book.title)
    st.caption(book.author)
    for page in book.pages:
        st.markdown(f"#### {page.page_number}. {page.title or ''}")
        for paragraph in page.paragraphs:
            st.markdown(paragraph.text)
            st.caption(paragraph.translation)
        for note in page.footnotes:
            st.markdown(f"- **{note.word}**: {note.definition}")


tab_story, tab_book, tab_vocab, tab_words, tab_notes, tab_dash = st.tabs(
    ["Story", "Book", "Vocab Memorize", "Word Expansion", "Notes", "Dashboard"]
)

# --- TAB 1: STORY ---
with tab_story:
    st.markdown("### Generate an Illustrated Story")
    with st.form("story_form"):
        level = st.selectbox("Level", LEVELS)
        topic = st.text_input("Topic", "A fox and a crow")
        grammar_scope = st.text_input("Grammar Scope", "Present tense, first declension")
        col_min, col_max = st.columns(2)
        min_sentences = col_min.number_input("Min sentences", min_value=1, value=3)
        max_sentences = col_max.number_input("Max sentences", min_value=1, value=5)
        illustrate = st.checkbox("Illustrate each sentence", value=True)
        submitted = st.form_submit_button("Generate Story")

    if submitted:
        try:
            request = StoryRequest(
                level=level,
                topic=topic,
                grammar_scope=grammar_scope,
                min_sentences=int(min_sentences),
                max_sentences=int(max_sentences),
            )
            with st.spinner("Consulting the Muses..."):
                st.session_state["story"] = generate_story(request, illustrate=illustrate)
        except ValidationError as e:
            show_validation_errors(e)
        except Exception as e:
            st.error(f"Story Generation Failed: {e}")

    story = st.session_state.get("story")
    if story:
        for index, sentence in enumerate(story.sentences):
            cols = st.columns([2, 3])
            if index < len(story.illustrations):
                cols[0].image(story.illustrations[index])
            with cols[1]:
                st.markdown(f"**{sentence.sentence}**")
                if sentence.transliteration:
                    st.caption(sentence.transliteration)
                st.write(sentence.detailed_syntax.translation)
                with st.expander("Syntax"):
                    for note in sentence.words:
                        st.markdown(f"- **{note.word}**: {note.syntax_note}")
                    st.markdown(sentence.detailed_syntax.breakdown)
        if story.glosses:
            with st.expander("Glossary"):
                for word, gloss in sorted(story.glosses.items()):
                    st.markdown(f"- **{word}** ({gloss.lemma}, {gloss.part_of_speech}): {gloss.definition}")
        if st.button("Save Story"):
            story_id = db.save_story(story.model_dump())
            st.success(f"Story saved (#{story_id}).")

# --- TAB 2: BOOK ---
with tab_book:
    st.markdown("### Generate a Book")
    with st.form("book_form"):
        level = st.selectbox("Level", LEVELS, key="book_level")
        topic = st.text_input("Topic", "The voyage of Odysseus", key="book_topic")
        grammar_scope = st.text_input("Grammar Scope", "Aorist tense", key="book_scope")
        num_pages = st.number_input("Pages", min_value=1, max_value=10, value=3)
        submitted = st.form_submit_button("Generate Book")

    if submitted:
        try:
            request = BookRequest(
                level=level, topic=topic, grammar_scope=grammar_scope, num_pages=int(num_pages)
            )
            with st.spinner("Writing the scrolls..."):
                st.session_state["book"] = generate_book(request)
        except ValidationError as e:
            show_validation_errors(e)
        except Exception as e:
            st.error(f"Book Generation Failed: {e}")

    book = st.session_state.get("book")
    if book:
        show_book(book)
        if st.button("Save Book"):
            st.success(f"Book saved (#{db.save_book(book.model_dump())}).")

# --- TAB 3: VOCAB MEMORIZE ---
with tab_vocab:
    st.markdown("### Vocabulary Memorization Story")
    with st.form("vocab_form"):
        level = st.selectbox("Level", LEVELS, key="vocab_level")
        vocab_list = st.text_input("Vocabulary (comma-separated)", "ἵππος, θάλασσα, λόγος")
        grammar_scope = st.text_input("Grammar Scope", "Present tense", key="vocab_scope")
        num_pages = st.number_input("Pages", min_value=1, max_value=10, value=3, key="vocab_pages")
        submitted = st.form_submit_button("Generate")

    if submitted:
        try:
            request = VocabBookRequest(
                level=level, vocab_list=vocab_list, grammar_scope=grammar_scope, num_pages=int(num_pages)
            )
            with st.spinner("Weaving the pages one by one..."):
                st.session_state["vocab_book"] = generate_vocab_memorize_book(request)
        except ValidationError as e:
            show_validation_errors(e)
        except Exception as e:
            st.error(f"Generation Failed: {e}")

    vocab_book = st.session_state.get("vocab_book")
    if vocab_book:
        show_book(vocab_book)
        if st.button("Save Vocab Book"):
            st.success(f"Book saved (#{db.save_book(vocab_book.model_dump())}).")

# --- TAB 4: WORD EXPANSION ---
with tab_words:
    st.markdown("### Word Expansion")
    words_input = st.text_input("Words to expand (comma-separated)")
    if st.button("Expand"):
        try:
            with st.spinner("Consulting the lexicon..."):
                for word in generate_and_save_word_expansion(db, words_input):
                    st.markdown(f"## {word['word']}")
                    st.markdown(word["expansion"])
        except ValueError as e:
            st.warning(str(e))
        except Exception as e:
            st.error(f"Expansion Failed: {e}")

    search = st.text_input("Search expansions")
    listing = db.search_expanded_words(search) if search else db.list_expanded_words()
    options = {f"{w['word']} (#{w['id']})": w["id"] for w in listing}
    selected = st.selectbox("Saved words", list(options)) if options else None

    if selected:
        entry = db.get_expanded_word(options[selected])
        edited = st.text_area("Expansion (Markdown)", entry["expansion"], height=300)
        if st.button("Save Changes"):
            db.update_expansion(entry["id"], edited)
            st.success("Expansion updated.")
        st.write("Tags:", ", ".join(entry["tags"]) or "none")
        new_tag = st.text_input("Add tag")
        if st.button("Add Tag") and new_tag.strip():
            db.add_tag(entry["id"], new_tag)
            st.rerun()

    st.download_button(
        "Download all expansions (CSV)",
        expanded_words_to_frame(db.all_expanded_words()).to_csv(index=False),
        file_name="expanded_words.csv",
    )

# --- TAB 5: NOTES ---
with tab_notes:
    st.markdown("### Notes")
    new_title = st.text_input("New note title")
    new_folder = st.text_input("Folder (use ':' for subfolders)")
    if st.button("Create Note") and new_title.strip():
        db.create_note(new_title, folder_path=new_folder or None)
        st.rerun()

    term = st.text_input("Filter notes")
    unfiled, tree, _ = build_folder_tree(filter_notes(db.get_notes(), term))

    def render_folder(node, depth=0):
        st.markdown(f"{'  ' * depth}📁 **{node['name']}**")
        for note in node["notes"]:
            st.markdown(f"{'  ' * (depth + 1)}- {note['title']}")
        for child in node["children"].values():
            render_folder(child, depth + 1)

    for folder in tree.values():
        render_folder(folder)
    for note in unfiled:
        st.markdown(f"- {note['title']}")

# --- TAB 6: DASHBOARD ---
with tab_dash:
    metrics = db.get_dashboard_metrics()
    c1, c2, c3 = st.columns(3)
    c1.metric("Stories", metrics["story_count"])
    c2.metric("Expanded Words", metrics["word_count"])
    c3.metric("Notes", metrics["note_count"])
    if metrics["stories_by_level"]:
        st.bar_chart(pd.DataFrame(metrics["stories_by_level"]).set_index("level"))
