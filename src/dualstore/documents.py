"""
Field-name normalization for documents moving from Couchbase to MongoDB.

Legacy documents carry free-form field names ("Flight Name", "Price (USD)")
that are awkward or invalid as MongoDB field paths. ``normalize_key`` maps
any name to a ``[a-z0-9_]`` identifier and ``transform_document`` applies it
to every key of an arbitrarily nested document.

Example:
    >>> transform_document({"Flight Name": "AB123", "Source Airport": "SFO"})
    {'flight_name': 'AB123', 'source_airport': 'SFO'}

Note:
    Documents must be acyclic. A document that contains itself recurses
    until the interpreter's recursion limit is hit.
"""

from __future__ import annotations

import re
from typing import TypeAlias

DocumentValue: TypeAlias = (
    None | bool | int | float | str | dict[str, "DocumentValue"] | list["DocumentValue"]
)
Document: TypeAlias = dict[str, DocumentValue]

_WHITESPACE = re.compile(r"\s+")
_PARENS = re.compile(r"[()]")
_INVALID = re.compile(r"[^a-z0-9_]")
_UNDERSCORES = re.compile(r"_+")


def normalize_key(key: str) -> str:
    """
    Canonicalize a field name into a storage-safe identifier.

    Steps, in order: lower-case, whitespace runs to ``_``, drop parentheses,
    other characters outside ``[a-z0-9_]`` to ``_``, collapse ``_`` runs,
    trim ``_`` from both ends. The function is total and idempotent.

    Examples:
        >>> normalize_key("Source Airport")
        'source_airport'
        >>> normalize_key("Price (USD)")
        'price_usd'
        >>> normalize_key("__a--b__")
        'a_b'
        >>> normalize_key("")
        ''
    """
    result = key.lower()
    result = _WHITESPACE.sub("_", result)
    result = _PARENS.sub("", result)
    result = _INVALID.sub("_", result)
    result = _UNDERSCORES.sub("_", result)
    return result.strip("_")


def transform_value(value: DocumentValue) -> DocumentValue:
    """
    Normalize the keys of every mapping nested inside ``value``.

    Lists keep their length and order; scalars are returned as-is.
    """
    match value:
        case dict():
            return transform_document(value)
        case list():
            return [transform_value(item) for item in value]
        case _:
            return value


def transform_document(document: Document) -> Document:
    """
    Return a copy of ``document`` with every key normalized.

    The input is never mutated. When two keys normalize to the same name,
    the one that comes later in iteration order wins.
    """
    return {normalize_key(key): transform_value(value) for key, value in document.items()}


__all__ = [
    "Document",
    "DocumentValue",
    "normalize_key",
    "transform_document",
    "transform_value",
]
