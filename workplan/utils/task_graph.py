"""
Task hierarchy traversal.

The parent -> children adjacency list is loaded once per operation and
walked iteratively, so deep hierarchies cost one query.
"""

from collections import deque
from uuid import UUID


def descendant_levels(adjacency: dict[UUID, list[UUID]], root_id: UUID) -> dict[UUID, int]:
    """
    Breadth-first walk below a task.

    Returns:
        Mapping of every descendant ID to its depth (children are level 1)
    """
    levels: dict[UUID, int] = {}
    queue = deque([(root_id, 0)])
    while queue:
        task_id, depth = queue.popleft()
        for child_id in adjacency.get(task_id, []):
            if child_id in levels or child_id == root_id:
                continue
            levels[child_id] = depth + 1
            queue.append((child_id, depth + 1))
    return levels


def descendant_ids(adjacency: dict[UUID, list[UUID]], root_id: UUID) -> set[UUID]:
    return set(descendant_levels(adjacency, root_id))
