"""
Lorm Naming — table and column name derivation.

    UserDetail        -> user_details   (table)
    createdAt         -> created_at     (column)
    user_id           -> user           (relation accessor)
"""

from __future__ import annotations

import re
from typing import Optional

__all__ = [
    "to_snake_case",
    "to_table_case",
    "pluralize",
    "table_name_for",
    "column_name_for",
    "relation_name_for",
    "is_identifier",
]

# Irregular plurals that don't follow standard rules
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "status": "statuses",
    "address": "addresses",
}

# Words whose plural is the word itself
_UNCOUNTABLE = frozenset({
    "data", "info", "information", "news", "series", "species", "equipment", "metadata",
})

_CAMEL_BOUNDARY_1 = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_2 = re.compile(r"([a-z0-9])([A-Z])")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

FK_SUFFIX = "_id"


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase / mixedCase / kebab-case to snake_case.

    >>> to_snake_case("UserDetail")
    'user_detail'
    >>> to_snake_case("HTTPRequestLog")
    'http_request_log'
    """
    name = name.replace("-", "_").replace(" ", "_")
    name = _CAMEL_BOUNDARY_1.sub(r"\1_\2", name)
    name = _CAMEL_BOUNDARY_2.sub(r"\1_\2", name)
    return re.sub(r"_+", "_", name).lower()


def pluralize(word: str) -> str:
    """
    Convert a singular English word to its plural form.

    Only the last underscore-separated segment is inflected, so
    ``user_detail`` becomes ``user_details``.
    """
    if not word:
        return word

    head, sep, last = word.rpartition("_")
    if sep and last:
        return head + sep + pluralize(last)

    lower_word = word.lower()
    if lower_word in _UNCOUNTABLE:
        return word
    if lower_word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[lower_word]

    if lower_word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower_word.endswith("y"):
        if len(word) > 1 and lower_word[-2] in "aeiou":
            return word + "s"
        return word[:-1] + "ies"
    if lower_word.endswith("fe"):
        return word[:-2] + "ves"
    if lower_word.endswith(("elf", "alf", "olf", "eaf", "oaf", "arf")):
        return word[:-1] + "ves"
    if lower_word.endswith(("hero", "potato", "tomato", "echo", "veto")):
        return word + "es"
    return word + "s"


def to_table_case(name: str) -> str:
    """Snake-case a type name and pluralize it: ``UserDetail`` -> ``user_details``."""
    return pluralize(to_snake_case(name))


def table_name_for(type_name: str, rename: Optional[str] = None) -> str:
    return rename if rename else to_table_case(type_name)


def column_name_for(field_name: str, rename: Optional[str] = None) -> str:
    return rename if rename else to_snake_case(field_name)


def relation_name_for(field_name: str) -> str:
    """
    Accessor name for a foreign-key field.

    The conventional ``_id`` suffix is dropped (``user_id`` -> ``user``);
    any other name is used unchanged.
    """
    if field_name.endswith(FK_SUFFIX) and len(field_name) > len(FK_SUFFIX):
        return field_name[: -len(FK_SUFFIX)]
    return field_name


def is_identifier(name: str) -> bool:
    """True when ``name`` is a plain SQL identifier (letters, digits, underscore)."""
    return bool(_IDENTIFIER.match(name or ""))
