"""
Sort-order assignment and bulk reorder.

New rows go last: max(sort_order in scope) + 1, or 1 for an empty scope,
read from the store at write time. Reorders are applied by the store in a
single transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .models import CatalogValidationError, FieldError, OrderScope, OrderUpdate
from .ports import SortOrderStorePort

logger = logging.getLogger(__name__)


class OrderingService:
    def __init__(self, store: SortOrderStorePort) -> None:
        self._store = store

    def next_sort_order(self, scope: OrderScope) -> int:
        current = self._store.max_sort_order(scope)
        return (current or 0) + 1

    def reorder(self, scope: OrderScope, updates: Sequence[OrderUpdate]) -> None:
        """
        Apply new positions for a scope, all or nothing.

        Equal sort orders are all persisted in input order; readers break
        ties by creation time.
        """
        if not updates:
            raise CatalogValidationError(
                [
                    FieldError(
                        code="reorder_empty",
                        message="Reorder list must contain at least one entry",
                        field="items",
                    )
                ]
            )
        for update in updates:
            if update.sort_order < 0:
                raise CatalogValidationError(
                    [
                        FieldError(
                            code="sort_order_negative",
                            message="sortOrder must be a non-negative integer",
                            field="sortOrder",
                        )
                    ]
                )

        self._store.apply(scope, updates)
        logger.info(
            "Reordered %d %s (owner=%s)", len(updates), scope.collection, scope.owner_id
        )
