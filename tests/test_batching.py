import logging
import threading

import pytest

from project_finsight.batching import batch_fetch, chunked


def test_chunked_dedupes_and_drops_empty_ids() -> None:
    ids = ["a", "b", None, "a", "", "c", "d", "e"]
    assert chunked(ids, 2) == [["a", "b"], ["c", "d"], ["e"]]


def test_chunked_rejects_invalid_size() -> None:
    with pytest.raises(ValueError):
        chunked(["a"], 0)


def test_batch_fetch_respects_chunk_size_and_merges() -> None:
    """75 ids are fetched in chunks of at most 30 and merged."""
    ids = [f"s{i}" for i in range(75)]
    seen_sizes: list[int] = []
    lock = threading.Lock()

    def fetch(chunk: list[str]) -> dict[str, str]:
        with lock:
            seen_sizes.append(len(chunk))
        # Odd ids are "missing" from the store.
        return {i: i.upper() for i in chunk if int(i[1:]) % 2 == 0}

    result = batch_fetch(ids, fetch, chunk_size=30, max_workers=3)

    assert sorted(seen_sizes) == [15, 30, 30]
    assert len(result) == 38
    assert result["s10"] == "S10"
    assert "s11" not in result


def test_batch_fetch_with_no_ids_does_not_call_fetch() -> None:
    def fetch(chunk):
        raise AssertionError("should not be called")

    assert batch_fetch([], fetch) == {}


def test_failed_chunk_propagates_by_default() -> None:
    def fetch(chunk):
        raise RuntimeError("store unavailable")

    with pytest.raises(RuntimeError):
        batch_fetch(["a", "b"], fetch)


def test_failed_chunk_is_skipped_when_requested(caplog) -> None:
    def fetch(chunk):
        if "bad" in chunk:
            raise RuntimeError("store unavailable")
        return {i: i for i in chunk}

    with caplog.at_level(logging.WARNING, logger="project_finsight.batching"):
        result = batch_fetch(
            ["ok1", "ok2", "bad"], fetch, chunk_size=2, skip_failed_chunks=True
        )

    assert result == {"ok1": "ok1", "ok2": "ok2"}
    assert "unresolved" in caplog.text
