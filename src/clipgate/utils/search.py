"""Free-text matching for video search.

A query is split on whitespace into terms. A video matches when every term
appears, case-insensitively, somewhere in its title, its description or one
of its tags. Terms are matched as literal text, so characters such as ``.``
or ``*`` carry no special meaning.
"""

from __future__ import annotations

from collections.abc import Iterable


def search_terms(query: object) -> list[str]:
    """Return the casefolded terms of ``query``; empty for blank or non-text input."""
    if not isinstance(query, str):
        return []
    return [term.casefold() for term in query.split()]


def matches_all(terms: Iterable[str], title: str, description: str, tags: Iterable[str]) -> bool:
    fields = [title.casefold(), description.casefold(), *(tag.casefold() for tag in tags)]
    return all(any(term in field for field in fields) for term in terms)
