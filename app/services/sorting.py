"""
Sort clause parsing: turns a client-supplied ``sortBy`` string such as
``"name desc,id"`` into ordering terms and resolves them against the columns
a query is allowed to order by.

A clause naming a field the query does not know is not an error. The whole
ordering is dropped and the caller returns its rows unsorted.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"
    UNSPECIFIED = "unspecified"


_DIRECTIONS = {
    "asc": Direction.ASCENDING,
    "ascending": Direction.ASCENDING,
    "desc": Direction.DESCENDING,
    "descending": Direction.DESCENDING,
}


@dataclass
class Sorting:
    sort_by: str = ""


@dataclass(frozen=True)
class SortTerm:
    field: str
    direction: Direction = Direction.UNSPECIFIED


def _parse_term(item: str) -> SortTerm:
    item = item.strip()
    if " " not in item:
        return SortTerm(field=item)
    parts = item.split(" ")
    # Direction words are matched exactly; anything else is dropped.
    return SortTerm(field=parts[0], direction=_DIRECTIONS.get(parts[1], Direction.UNSPECIFIED))


def parse_sort_clause(sort_by: str | None) -> list[SortTerm]:
    """
    Parse comma-separated ``field [direction]`` tokens, left to right.
    Pure function: field names are not checked here.
    """
    if not sort_by:
        return []
    return [_parse_term(item) for item in sort_by.split(",")]


def resolve_order_by(terms: list[SortTerm], columns: dict[str, str]) -> list[str] | None:
    """
    Map terms onto SQL ordering expressions using ``columns`` (lower-case
    field name -> column expression).

    Returns None when any term names an unknown field, meaning the result
    set is left unsorted.
    """
    expressions: list[str] = []
    for term in terms:
        column = columns.get(term.field.lower())
        if column is None:
            logger.debug("Ignoring ordering: unknown sort field %r", term.field)
            return None
        if term.direction is Direction.DESCENDING:
            expressions.append(f"{column} DESC")
        else:
            expressions.append(f"{column} ASC")
    return expressions
