"""Folder organisation and filtering for notes.

Folder paths are colon-separated, e.g. ``Grammar:Verbs:Aorist``.
"""

FOLDER_SEPARATOR = ":"


def filter_notes(notes, term):
    """Notes whose title, content or any tag contains term (case-insensitive)."""
    needle = (term or "").lower()
    if not needle:
        return list(notes)
    matches = []
    for note in notes:
        if needle in (note.get("title") or "").lower():
            matches.append(note)
        elif needle in (note.get("content") or "").lower():
            matches.append(note)
        elif any(needle in (tag or "").lower() for tag in note.get("tags") or []):
            matches.append(note)
    return matches


def _folder(name, path):
    return {"name": name, "path": path, "notes": [], "children": {}}


def build_folder_tree(notes):
    """
    Groups notes into a nested folder tree.

    Returns (unfiled, tree, folder_paths). Each tree node is a dict with
    name, path, notes and children; a note lives in its deepest folder and
    every intermediate folder exists even when it holds no notes.
    """
    tree = {}
    unfiled = []
    folder_paths = []

    for note in notes:
        folder_path = note.get("folder_path")
        if not folder_path:
            unfiled.append(note)
            continue

        if folder_path not in folder_paths:
            folder_paths.append(folder_path)

        level = tree
        current_path = ""
        parts = folder_path.split(FOLDER_SEPARATOR)
        for index, part in enumerate(parts):
            current_path = part if index == 0 else f"{current_path}{FOLDER_SEPARATOR}{part}"
            if part not in level:
                level[part] = _folder(part, current_path)
            if index == len(parts) - 1:
                level[part]["notes"].append(note)
            level = level[part]["children"]

    return unfiled, tree, folder_paths
