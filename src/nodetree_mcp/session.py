"""Caller-side holder for the current forest and selection.

The engine never keeps state; a session keeps the latest forest value and
replaces it wholesale with whatever an engine call returns.
"""

import logging
import threading
from typing import Any, Callable, List, Optional, Set

from .engine import (
    cut_and_paste,
    default_forest,
    flatten,
    is_indeterminate,
    select_range,
    selected_nodes,
    toggle_membership,
    toggle_selection,
    validate_forest,
)
from .engine.identity import clone_forest
from .engine.lookup import collect_ids
from .models import Forest, JsonDict

logger = logging.getLogger(__name__)


class ForestSession:
    """Current forest, selected ids and cut buffer for one tree view."""

    def __init__(self, forest: Optional[Forest] = None, multiple: bool = True):
        self._lock = threading.RLock()
        self._forest: Forest = clone_forest(validate_forest(forest)) if forest is not None else default_forest()
        self.multiple = multiple
        self.selected_ids: Set[str] = set()
        self.cut_ids: Set[str] = set()
        self.last_clicked: Optional[str] = None

    @property
    def forest(self) -> Forest:
        return self._forest

    def snapshot(self) -> Forest:
        """Independent copy of the current forest."""
        return clone_forest(self._forest)

    def _swap(self, forest: Forest) -> Forest:
        with self._lock:
            self._forest = forest
            # Drop ids that no longer exist (deleted nodes)
            live = collect_ids(forest)
            self.selected_ids &= live
            self.cut_ids &= live
        return forest

    def apply(self, operation: Callable[..., Forest], *args: Any, **kwargs: Any) -> Forest:
        """Run ``operation(current_forest, *args, **kwargs)`` and keep its result.

        The lock is held from reading the forest to storing the result, so
        concurrent calls are applied one after another. If the operation
        raises, the current forest stays as it was.
        """
        with self._lock:
            result = operation(self._forest, *args, **kwargs)
            logger.debug("Session applied %s", getattr(operation, "__name__", operation))
            return self._swap(result)

    def reset(self, forest: Optional[Forest] = None) -> Forest:
        """Replace the forest (validated) and clear selection and cut buffer."""
        new_forest = clone_forest(validate_forest(forest)) if forest is not None else default_forest()
        with self._lock:
            self._forest = new_forest
            self.selected_ids = set()
            self.cut_ids = set()
            self.last_clicked = None
        return new_forest

    # Selection

    def toggle(self, node_id: str) -> Set[str]:
        with self._lock:
            self.selected_ids = toggle_selection(
                self._forest, node_id, self.selected_ids, self.multiple
            )
            self.last_clicked = node_id
            return set(self.selected_ids)

    def select_range(self, anchor_id: str, target_id: str) -> Set[str]:
        """Add every node between two nodes (display order, inclusive)."""
        with self._lock:
            self.selected_ids = select_range(self._forest, anchor_id, target_id, self.selected_ids)
            return set(self.selected_ids)

    def click(self, node_id: str, shift: bool = False, ctrl: bool = False) -> Set[str]:
        """Row click with modifier keys: shift extends a range, ctrl flips one id."""
        with self._lock:
            if shift and self.last_clicked:
                self.selected_ids = select_range(
                    self._forest, self.last_clicked, node_id, self.selected_ids
                )
            elif ctrl:
                self.selected_ids = toggle_membership(self.selected_ids, node_id)
                self.last_clicked = node_id
            else:
                self.selected_ids = {node_id}
                self.last_clicked = node_id
            return set(self.selected_ids)

    def selected(self) -> List[JsonDict]:
        with self._lock:
            return clone_forest(selected_nodes(self._forest, self.selected_ids))

    def partially_selected(self) -> List[str]:
        """Ids of branches in the indeterminate state, in display order."""
        with self._lock:
            return [
                node["id"]
                for node in flatten(self._forest)
                if is_indeterminate(node, self.selected_ids)
            ]

    def clear_selection(self) -> None:
        with self._lock:
            self.selected_ids = set()

    # Cut / paste

    def cut(self) -> Set[str]:
        """Move the current selection into the cut buffer."""
        with self._lock:
            self.cut_ids = set(self.selected_ids)
            self.selected_ids = set()
            return set(self.cut_ids)

    def paste(self, target_parent_id: Optional[str] = None) -> Forest:
        """Move the cut subtrees to ``target_parent_id`` (or the end of the root)."""
        with self._lock:
            if not self.cut_ids:
                return self._forest
            result = self.apply(cut_and_paste, list(self.cut_ids), target_parent_id)
            self.cut_ids = set()
            return result
