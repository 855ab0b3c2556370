import logging
from collections.abc import Callable, Collection, Hashable, Iterable
from typing import TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")
K = TypeVar("K", bound=Hashable)


def group_by(
    rows: Iterable[R],
    key_of: Callable[[R], K],
    only: Collection[K] | None = None,
) -> dict[K, list[R]]:
    """
    Partition *rows* into lists keyed by ``key_of(row)``.

    Input order is preserved inside every list; nothing is re-sorted, so the
    caller must hand over rows already in the relation's order.  Keys with
    no rows are absent from the result; look them up with ``.get(key, [])``.

    When *only* is given, rows whose key is not one of those values are
    dropped instead of being grouped under an unexpected parent.
    """
    allowed = None if only is None else frozenset(only)
    groups: dict[K, list[R]] = {}
    dropped = 0
    for row in rows:
        key = key_of(row)
        if allowed is not None and key not in allowed:
            dropped += 1
            continue
        bucket = groups.get(key)
        if bucket is None:
            groups[key] = bucket = []
        bucket.append(row)
    if dropped:
        logger.debug("group_by dropped %d row(s) keyed to unknown parents", dropped)
    return groups


def index_by(rows: Iterable[R], key_of: Callable[[R], K]) -> dict[K, R]:
    """Map each key to its row; for many-to-one lookups where keys are unique."""
    return {key_of(row): row for row in rows}
