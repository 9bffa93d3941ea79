"""CT type resolution from route slugs.

Routes identify a CT type by a slug such as ``type4``. Operators may rename the
canonical ``"CT Type 4"`` to something like ``"TYPE 4 WORKFLOW (AUDIT REPORT)"``,
so resolution tries the canonical name first and then falls back to a
word-boundary match on ``type <n>``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from litestar_ct_filing.core.types import StrEnum
from litestar_ct_filing.exceptions import CtTypeNotFoundError

__all__ = [
    "MatchStrategy",
    "NamedType",
    "TypeMatch",
    "canonical_type_name",
    "match_ct_type",
    "resolve_ct_type",
    "slug_number",
]

_DIGITS = re.compile(r"\d+")


class NamedType(Protocol):
    """Anything with a ``name``, e.g. a CT type row or DTO."""

    name: str


TypeT = TypeVar("TypeT", bound=NamedType)


class MatchStrategy(StrEnum):
    """How a CT type was matched to a slug, in the order the tiers are tried.

    Attributes:
        CANONICAL: Exact, case-insensitive match on ``"CT Type {n}"``.
        WORD_BOUNDARY: Case-insensitive ``\\btype\\s*{n}\\b`` search in the name.
    """

    CANONICAL = "canonical"
    WORD_BOUNDARY = "word_boundary"


@dataclass(frozen=True)
class TypeMatch(Generic[TypeT]):
    """A resolved CT type together with the tier that matched it."""

    ct_type: TypeT
    strategy: MatchStrategy


def canonical_type_name(number: str | int) -> str:
    """Return the canonical CT type name for a type number."""
    return f"CT Type {number}"


def slug_number(slug: str) -> str | None:
    """Extract the type number from a slug such as ``type4``.

    Args:
        slug: The route slug.

    Returns:
        The first run of digits in the slug, or None if there is none.
    """
    match = _DIGITS.search(slug)
    return match.group(0) if match else None


def _canonical_matcher(number: str) -> Callable[[str], bool]:
    target = canonical_type_name(number).lower()
    return lambda name: name.lower() == target


def _word_boundary_matcher(number: str) -> Callable[[str], bool]:
    pattern = re.compile(rf"\btype\s*{re.escape(number)}\b", re.IGNORECASE)
    return lambda name: pattern.search(name) is not None


_TIERS: Sequence[tuple[MatchStrategy, Callable[[str], Callable[[str], bool]]]] = (
    (MatchStrategy.CANONICAL, _canonical_matcher),
    (MatchStrategy.WORD_BOUNDARY, _word_boundary_matcher),
)


def match_ct_type(types: Iterable[TypeT], slug: str) -> TypeMatch[TypeT]:
    """Resolve a slug to a CT type, reporting which tier matched.

    Each tier scans the whole list before the next tier is tried, so a
    canonical name always wins over a renamed type that merely mentions the
    same number.

    Args:
        types: Candidate CT types.
        slug: The route slug, e.g. ``type4``.

    Returns:
        The matched type and strategy.

    Raises:
        CtTypeNotFoundError: If the slug has no number or nothing matches.

    Example:
        >>> match_ct_type(types, "type4").strategy
        <MatchStrategy.CANONICAL: 'canonical'>
    """
    number = slug_number(slug)
    if number is None:
        raise CtTypeNotFoundError(slug)

    candidates = list(types)
    for strategy, build_matcher in _TIERS:
        matches = build_matcher(number)
        for ct_type in candidates:
            if matches(ct_type.name):
                return TypeMatch(ct_type=ct_type, strategy=strategy)

    raise CtTypeNotFoundError(slug)


def resolve_ct_type(types: Iterable[TypeT], slug: str) -> TypeT:
    """Resolve a slug to a CT type.

    Args:
        types: Candidate CT types.
        slug: The route slug, e.g. ``type4``.

    Returns:
        The matched CT type.

    Raises:
        CtTypeNotFoundError: If the slug has no number or nothing matches.
    """
    return match_ct_type(types, slug).ct_type
