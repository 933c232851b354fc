"""
Streaming best-item selection.

Items are offered one at a time together with a score; the selector keeps
the best one seen so far. On equal scores the first item offered wins.
"""

import math
from typing import Generic, Optional, TypeVar

T = TypeVar('T')

HIGHER_IS_BETTER = 1
LOWER_IS_BETTER = -1


class BestItemSelector(Generic[T]):
    """
    Keeps the best-scoring item of a stream.

    Attributes:
        order: HIGHER_IS_BETTER or LOWER_IS_BETTER
    """

    def __init__(self, order: int = HIGHER_IS_BETTER):
        if order not in (HIGHER_IS_BETTER, LOWER_IS_BETTER):
            raise ValueError(f"Unknown selection order: {order}")
        self.order = order
        self._best_item: Optional[T] = None
        self._best_score = math.nan
        self._has_item = False
        self._num_items = 0

    def add_item(self, item: T, score: float) -> bool:
        """
        Offer an item. Returns True if it became the new best.
        """
        self._num_items += 1
        if not self._has_item or score * self.order > self._best_score * self.order:
            self._best_item = item
            self._best_score = score
            self._has_item = True
            return True
        return False

    def reset(self) -> None:
        self._best_item = None
        self._best_score = math.nan
        self._has_item = False
        self._num_items = 0

    @property
    def best_item(self) -> Optional[T]:
        return self._best_item

    @property
    def best_score(self) -> float:
        """Score of the best item, NaN if no item was offered."""
        return self._best_score if self._has_item else math.nan

    def num_items(self) -> int:
        return self._num_items
