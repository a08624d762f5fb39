# src/task_tracker/tasks/compactor.py

"""
Renumbering of collection keys into a dense run 1..N.

Ids double as the ordinal a user types on the command line, so every
deletion is followed by a full rewrite of the surviving entries. This is
O(n) per mutation, which is fine for a single user's task list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .codec import encode_id

if TYPE_CHECKING:
    from .task_store import Bucket

logger = logging.getLogger(__name__)


def compact(bucket: Bucket) -> int:
    """
    Re-key every entry of `bucket` to 1..N in ascending order and set the
    sequence to N. Returns N.
    """
    entries = bucket.items()
    idx = 0
    for key, value in entries:
        idx += 1
        new_key = encode_id(idx)
        if key == new_key:
            continue
        bucket.delete(key)
        bucket.put(new_key, value)
    bucket.set_sequence(idx)
    logger.debug("Compacted bucket=%s entries=%d", bucket.name, idx)
    return idx


def rewrite(bucket: Bucket, values: Iterable[bytes]) -> int:
    """Replace the bucket's contents with `values`, keyed 1..N in order. Returns N."""
    bucket.clear()
    n = 0
    for value in values:
        bucket.put(encode_id(bucket.next_sequence()), value)
        n += 1
    logger.debug("Rewrote bucket=%s entries=%d", bucket.name, n)
    return n
