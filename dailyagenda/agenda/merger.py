"""Merging and deduplication of occurrences reported by several sources."""

import logging
from typing import Iterable

from .models import DedupKey, Occurrence

logger = logging.getLogger(__name__)


def merge(existing: Iterable[Occurrence], incoming: Iterable[Occurrence]) -> list[Occurrence]:
    """Merge newly reported occurrences into an already merged list.

    Occurrences are duplicates when title, start and end all match exactly, even
    when they come from different sources. Incoming duplicates of anything
    already held (or of an earlier incoming item) are dropped. The result is
    stable-sorted by start, so ties keep their relative order.

    Safe to call repeatedly as sources report in any order: merging the same
    batch twice leaves the result unchanged.

    Args:
        existing: Occurrences already held by the consumer
        incoming: Occurrences from one newly reported source

    Returns:
        New merged list; neither input is modified
    """
    merged = list(existing)
    seen: set[DedupKey] = {occurrence.dedup_key for occurrence in merged}

    added = 0
    duplicates = 0
    for occurrence in incoming:
        key = occurrence.dedup_key
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        merged.append(occurrence)
        added += 1

    merged.sort(key=lambda occurrence: occurrence.start)

    if duplicates:
        logger.debug(f"Dropped {duplicates} duplicate occurrences while merging")
    logger.debug(f"Merged {added} new occurrences, {len(merged)} total")
    return merged
