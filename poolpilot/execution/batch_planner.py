"""
Batch Planner
=============
Slices an ordered instruction list into per-transaction groups.

The group size is chosen by the caller from the known size of the
instructions it builds; nothing here measures bytes.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def count_batches(total: int, group_size: int) -> int:
    """ceil(total / group_size)."""
    if group_size < 1:
        raise ValueError(f"group_size must be a positive integer, got {group_size}")
    return -(-total // group_size)


def plan_batches(instructions: Sequence[T], group_size: int) -> List[List[T]]:
    """
    Partition `instructions` into contiguous groups of at most `group_size`.

    Order is preserved and nothing is dropped or duplicated; the last group
    may be shorter. An empty sequence yields no groups.
    """
    n_batches = count_batches(len(instructions), group_size)
    return [
        list(instructions[i * group_size:(i + 1) * group_size])
        for i in range(n_batches)
    ]
