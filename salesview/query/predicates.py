"""
Predicate building for the sales listing.

Filters and free-text search are turned into small, store-neutral predicate
trees; the store layer compiles them into its own query language. An empty
predicate (no terms) is the universal predicate and always means "no filter".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Tuple, Union

from salesview.domain import fields
from salesview.domain.models import FilterSpec

_NON_DIGITS = re.compile(r"\D")


class Op(str, Enum):
    IN = "in"
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"  # case-insensitive literal substring


@dataclass(frozen=True)
class Condition:
    field: str
    op: Op
    value: Any


@dataclass(frozen=True)
class Predicate:
    """
    Boolean combination of conditions and nested predicates.

    `mode` is "and" or "or". A predicate without terms matches every record.
    """

    mode: str = "and"
    terms: Tuple[Union[Condition, "Predicate"], ...] = ()

    @property
    def is_universal(self) -> bool:
        return not self.terms

    def narrow(self, *conditions: Union[Condition, "Predicate"]) -> "Predicate":
        """Return this predicate AND the given terms."""
        if self.is_universal:
            return Predicate("and", tuple(conditions))
        return Predicate("and", (self, *conditions))

    def conditions(self) -> Iterator[Condition]:
        """Iterate over every leaf condition, depth first."""
        for term in self.terms:
            if isinstance(term, Predicate):
                yield from term.conditions()
            else:
                yield term


UNIVERSAL = Predicate()


def build_filter_predicate(spec: FilterSpec) -> Predicate:
    """
    Translate facet selections and ranges into a conjunction.

    Facets use set membership, except tags: they are stored as comma-joined free
    text, so each selected tag is a case-insensitive substring match and the
    selected tags are OR-joined.
    """
    terms: list[Union[Condition, Predicate]] = []

    facets = (
        (fields.CUSTOMER_REGION, spec.customer_region),
        (fields.GENDER, spec.gender),
        (fields.PRODUCT_CATEGORY, spec.product_category),
        (fields.PAYMENT_METHOD, spec.payment_method),
    )
    for field, values in facets:
        if values:
            terms.append(Condition(field, Op.IN, tuple(values)))

    if spec.min_age is not None:
        terms.append(Condition(fields.AGE, Op.GTE, spec.min_age))
    if spec.max_age is not None:
        terms.append(Condition(fields.AGE, Op.LTE, spec.max_age))

    if spec.tags:
        terms.append(
            Predicate("or", tuple(Condition(fields.TAGS, Op.CONTAINS, tag) for tag in spec.tags))
        )

    if spec.start_date:
        terms.append(Condition(fields.DATE, Op.GTE, spec.start_date))
    if spec.end_date:
        terms.append(Condition(fields.DATE, Op.LTE, spec.end_date))

    return Predicate("and", tuple(terms)) if terms else UNIVERSAL


def build_search_predicate(token: str | None) -> Predicate:
    """
    Translate a free-text token into a disjunction over text and numeric columns.

    Numeric columns are only compared when the token still has digits after
    stripping everything else, so a purely alphabetic token never reaches them.
    """
    if not token or not token.strip():
        return UNIVERSAL
    token = token.strip()

    disjuncts: list[Condition] = [
        Condition(field, Op.CONTAINS, token) for field in fields.SEARCH_TEXT_FIELDS
    ]

    digits = _NON_DIGITS.sub("", token)
    if digits:
        number = int(digits)
        disjuncts.extend(Condition(field, Op.EQ, number) for field in fields.SEARCH_NUMERIC_FIELDS)

    disjuncts = [condition for condition in disjuncts if condition.value not in (None, "")]
    return Predicate("or", tuple(disjuncts)) if disjuncts else UNIVERSAL


def combine_predicates(filter_predicate: Predicate, search_predicate: Predicate) -> Predicate:
    """AND the non-empty parts together; both empty yields the universal predicate."""
    parts = tuple(p for p in (filter_predicate, search_predicate) if not p.is_universal)
    if not parts:
        return UNIVERSAL
    if len(parts) == 1:
        return parts[0]
    return Predicate("and", parts)


__all__ = [
    "Op",
    "Condition",
    "Predicate",
    "UNIVERSAL",
    "build_filter_predicate",
    "build_search_predicate",
    "combine_predicates",
]
