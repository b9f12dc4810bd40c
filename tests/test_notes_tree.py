from hellenika.notes import build_folder_tree, filter_notes

NOTES = [
    {"id": 1, "title": "Aorist endings", "content": "-σα, -σας", "tags": ["verbs"], "folder_path": "Grammar:Verbs"},
    {"id": 2, "title": "Second declension", "content": "λόγος", "tags": [], "folder_path": "Grammar:Nouns"},
    {"id": 3, "title": "Reading list", "content": None, "tags": ["Homer"], "folder_path": None},
    {"id": 4, "title": "Overview", "content": "", "tags": None, "folder_path": "Grammar"},
    {"id": 5, "title": "Strong aorist", "content": "", "tags": [], "folder_path": "Grammar:Verbs"},
]


def test_tree_nests_folders():
    unfiled, tree, folder_paths = build_folder_tree(NOTES)

    assert [n["id"] for n in unfiled] == [3]
    assert folder_paths == ["Grammar:Verbs", "Grammar:Nouns", "Grammar"]

    grammar = tree["Grammar"]
    assert grammar["path"] == "Grammar"
    assert [n["id"] for n in grammar["notes"]] == [4]
    assert set(grammar["children"]) == {"Verbs", "Nouns"}

    verbs = grammar["children"]["Verbs"]
    assert verbs["path"] == "Grammar:Verbs"
    assert [n["id"] for n in verbs["notes"]] == [1, 5]
    assert verbs["children"] == {}


def test_intermediate_folders_exist_without_notes():
    _, tree, _ = build_folder_tree([{"id": 9, "title": "Deep", "folder_path": "A:B:C"}])

    assert tree["A"]["notes"] == []
    assert tree["A"]["children"]["B"]["notes"] == []
    assert tree["A"]["children"]["B"]["children"]["C"]["path"] == "A:B:C"


def test_filter_matches_title_content_and_tags():
    assert [n["id"] for n in filter_notes(NOTES, "AORIST")] == [1, 5]
    assert [n["id"] for n in filter_notes(NOTES, "λόγος")] == [2]
    assert [n["id"] for n in filter_notes(NOTES, "homer")] == [3]
    assert filter_notes(NOTES, "") == NOTES
    assert filter_notes(NOTES, "nothing like this") == []
