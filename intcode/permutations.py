"""
Johnson–Trotter permutation generator.

Visits every ordering of a sequence of distinct values, each ordering
differing from the previous one by a single swap of adjacent elements.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

LEFT = -1
RIGHT = 1


def _largest_mobile(perm: list[int], directions: list[int]) -> int | None:
    """Index of the largest mobile element, or None if nothing can move.

    An element is mobile when the neighbour it points at is smaller.
    """
    best = None
    for i, k in enumerate(perm):
        j = i + directions[k]
        if 0 <= j < len(perm) and perm[j] < k:
            if best is None or k > perm[best]:
                best = i
    return best


def johnson_trotter(values: Sequence[int]) -> Iterator[tuple[int, ...]]:
    """Yield all orderings of ``values``, starting with ``values`` itself."""
    values = tuple(values)
    if len(set(values)) != len(values):
        raise ValueError(f"values must be distinct, got {values}")

    # Permute ranks 0..n-1 and map back to values on the way out
    perm = list(range(len(values)))
    directions = [LEFT] * len(values)
    yield values

    while True:
        i = _largest_mobile(perm, directions)
        if i is None:
            return
        k = perm[i]
        j = i + directions[k]
        perm[i], perm[j] = perm[j], perm[i]
        for larger in range(k + 1, len(perm)):
            directions[larger] = -directions[larger]
        yield tuple(values[r] for r in perm)
