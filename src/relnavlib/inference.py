"""Naming-convention heuristics for foreign keys and table names.

Nothing here talks to a database. Every function takes the known tables
explicitly, either as plain names or as ``TableDescriptor`` objects, and
matches case-insensitively while returning names in their stored casing.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Union

from .models import TableDescriptor

TableLike = Union[str, TableDescriptor]

VOWELS = "aeiou"


def names_of(known_tables: Iterable[TableLike]) -> List[str]:
    return [t.name if isinstance(t, TableDescriptor) else str(t) for t in known_tables]


def pluralize(word: str) -> str:
    """Return a best-effort plural of ``word`` (category -> categories)."""
    if word.endswith("y"):
        # a lone "y" counts as following a vowel
        if len(word) < 2 or word[-2] in VOWELS:
            return word + "s"
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def singularize(word: str) -> str:
    """Undo the common plural endings: ies -> y, es -> '', s -> ''."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("es"):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def _match_candidates(base: str, names: List[str]) -> Optional[str]:
    lowered = [n.lower() for n in names]
    for candidate in (pluralize(base), base, base + "s"):
        if candidate in lowered:
            return names[lowered.index(candidate)]
    return None


def classify_foreign_key(column_name: str, known_tables: Iterable[TableLike]) -> Optional[str]:
    """Return the table a column appears to reference, or None.

    ``user_id`` and ``userId`` both map to ``users`` when such a table is known.
    A column named ``id`` is the row's own key and never a reference.
    """
    names = names_of(known_tables)
    if not names:
        return None

    lower = column_name.lower()
    if lower == "id":
        return None

    if lower.endswith("_id") and len(lower) > 3:
        match = _match_candidates(lower[:-3], names)
        if match is not None:
            return match

    if lower.endswith("id") and len(lower) > 2:
        match = _match_candidates(lower[:-2], names)
        if match is not None:
            return match

    return None


def foreign_key_columns(columns: Iterable[str], known_tables: Iterable[TableLike]) -> Dict[str, str]:
    """Map each reference-looking column in ``columns`` to its target table."""
    names = names_of(known_tables)
    links: Dict[str, str] = {}
    for col in columns:
        target = classify_foreign_key(col, names)
        if target is not None:
            links[col] = target
    return links


def resolve_table_name(guess: str, known_tables: Iterable[TableLike]) -> str:
    """Find the real table behind a guessed name; echo the guess on a miss.

    Strategies, first hit wins: exact, singular exact, suffix, singular suffix,
    then a substring search on the bare root. The substring search takes the
    first table in list order.
    """
    names = names_of(known_tables)
    if not names or not guess:
        return guess

    lowered = [n.lower() for n in names]
    g = guess.lower()

    if g in lowered:
        return names[lowered.index(g)]

    singular = singularize(g)
    if singular != g and singular in lowered:
        return names[lowered.index(singular)]

    for i, t in enumerate(lowered):
        if t.endswith("_" + g) or t.endswith(g):
            return names[i]

    if singular:
        for i, t in enumerate(lowered):
            if t.endswith("_" + singular) or t.endswith(singular):
                return names[i]

    for suffix in ("ies", "es", "s"):
        if g.endswith(suffix):
            root = g[: -len(suffix)]
            break
    else:
        root = g
    root = root.replace("_", "")
    if root:
        for i, t in enumerate(lowered):
            if root in t:
                return names[i]

    return guess
