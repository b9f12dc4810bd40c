import pandas as pd

GLOSS_COLUMNS = ["word", "lemma", "part_of_speech", "definition", "morphology"]
EXPANSION_COLUMNS = ["word", "lemma", "tags", "expansion"]


def glosses_to_frame(glosses) -> pd.DataFrame:
    """One row per glossed word, sorted by word."""
    rows = []
    for word, entry in (glosses or {}).items():
        data = entry.model_dump() if hasattr(entry, "model_dump") else dict(entry)
        rows.append({"word": word, **data})

    df = pd.DataFrame(rows, columns=GLOSS_COLUMNS).fillna("")
    return df.sort_values("word").reset_index(drop=True)


def expanded_words_to_frame(words) -> pd.DataFrame:
    rows = [
        {
            "word": w["word"],
            "lemma": w.get("lemma") or "",
            "tags": ", ".join(w.get("tags") or []),
            "expansion": w["expansion"],
        }
        for w in words or []
    ]
    df = pd.DataFrame(rows, columns=EXPANSION_COLUMNS)
    return df.sort_values("word").reset_index(drop=True)


def to_csv_text(df: pd.DataFrame) -> str:
    return df.to_csv(index=False)
