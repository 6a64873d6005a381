# Project FinSight - Financial Reporting for Project Dashboards
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Chunked, concurrent id lookups.

The data store only accepts a bounded number of ids per lookup. To resolve
an arbitrary number of ids, they are split into chunks that are fetched
concurrently and merged back into a single (possibly partial) map.
"""

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from .db import MAX_BATCH_LOOKUP_IDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(ids: Iterable[Optional[str]], size: int) -> list[list[str]]:
    """
    Split ids into chunks of at most ``size`` elements.

    Empty ids are dropped and duplicates keep their first position only.

    Raises:
        ValueError: if size is lower than 1.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}.")

    unique = [i for i in dict.fromkeys(ids) if i]
    return [unique[start : start + size] for start in range(0, len(unique), size)]


def batch_fetch(
    ids: Iterable[Optional[str]],
    fetch_chunk: Callable[[list[str]], Mapping[str, T]],
    *,
    chunk_size: int = MAX_BATCH_LOOKUP_IDS,
    max_workers: Optional[int] = None,
    skip_failed_chunks: bool = False,
) -> dict[str, T]:
    """
    Fetch records for many ids through a bounded per-call lookup.

    Args:
        ids: Ids to resolve (duplicates and empty ids are ignored).
        fetch_chunk: Callable taking at most ``chunk_size`` ids and
            returning a partial id -> record mapping.
        chunk_size: Maximum number of ids per call.
        max_workers: Thread pool size (default: one worker per chunk).
        skip_failed_chunks: When True, a chunk that raises is logged and
            its ids are left unresolved. When False the error propagates.

    Returns:
        The merged id -> record mapping. Ids not found are absent.
    """
    chunks = chunked(ids, chunk_size)
    if not chunks:
        return {}

    workers = max_workers or len(chunks)
    result: dict[str, T] = {}

    with ThreadPoolExecutor(max_workers=min(workers, len(chunks))) as pool:
        futures = [(chunk, pool.submit(fetch_chunk, chunk)) for chunk in chunks]
        for chunk, future in futures:
            try:
                found = future.result()
            except Exception:  # noqa: BLE001
                if not skip_failed_chunks:
                    raise
                logger.warning(
                    "Lookup of %d id(s) failed; they stay unresolved.",
                    len(chunk),
                    exc_info=True,
                )
                continue
            result.update(found)

    logger.debug("Resolved %d record(s) in %d chunk(s).", len(result), len(chunks))
    return result
