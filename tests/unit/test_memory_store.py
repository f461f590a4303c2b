"""Unit tests for the in-memory sorted column store."""

import pytest

from indexed_collections.components.memory_store import SortedColumnStore
from indexed_collections.core.composite import CompositeKey
from indexed_collections.core.errors import PartialBatchFailure, StoreUnavailable
from indexed_collections.core.types import Mutation


@pytest.fixture
def store():
    """Create empty store for tests."""
    s = SortedColumnStore()
    yield s
    s.close()


def col(*values):
    return CompositeKey.of(*values)


def fail_after(store, monkeypatch, n):
    """Make the store fail on the (n+1)th applied mutation."""
    original = store._apply
    applied = []

    def flaky(mutation, ts):
        if len(applied) >= n:
            raise RuntimeError("injected failure")
        applied.append(mutation)
        original(mutation, ts)

    monkeypatch.setattr(store, "_apply", flaky)
    return applied


def test_store_basic_put_get(store):
    """Test basic put and get operations."""
    store.put("t", "row", col("a"), "value1", 1000)
    store.put("t", "row", col("b"), "value2", 1001)

    assert store.get("t", "row", col("a")) == "value1"
    assert store.get("t", "row", col("b")) == "value2"
    assert store.get("t", "row", col("missing")) is None
    assert store.get("t", "other", col("a")) is None
    assert store.get("other", "row", col("a")) is None


def test_store_update_overwrites(store):
    """Test that a newer put overwrites an existing column."""
    store.put("t", "row", col("a"), "value1", 1000)
    store.put("t", "row", col("a"), "value2", 1001)

    assert store.get("t", "row", col("a")) == "value2"


def test_store_delete_creates_tombstone(store):
    """Test that delete hides the column."""
    store.put("t", "row", col("a"), "value1", 1000)
    store.delete("t", "row", col("a"), 1001)

    assert store.get("t", "row", col("a")) is None
    assert store.scan_range("t", "row") == []


def test_store_last_write_wins_by_timestamp(store):
    """Test that an older write does not replace a newer one."""
    store.put("t", "row", col("a"), "new", 2000)
    store.put("t", "row", col("a"), "old", 1000)
    store.delete("t", "row", col("a"), 1500)

    assert store.get("t", "row", col("a")) == "new"


def test_store_tombstone_wins_tie(store):
    """Test that a delete and a put at the same timestamp leave the column deleted."""
    store.delete("t", "row", col("a"), 1000)
    store.put("t", "row", col("a"), "value", 1000)

    assert store.get("t", "row", col("a")) is None

    store.put("t", "row", col("b"), "value", 1000)
    store.delete("t", "row", col("b"), 1000)

    assert store.get("t", "row", col("b")) is None


def test_store_put_none_rejected(store):
    """Test that None cannot be stored as a value."""
    with pytest.raises(ValueError):
        store.put("t", "row", col("a"), None, 1000)


def test_store_rejects_non_composite_column_keys(store):
    """Test that plain column keys are rejected before anything is applied."""
    with pytest.raises(TypeError):
        store.apply_batch(
            [Mutation.put("t", "row", col("a"), 1), Mutation.put("t", "row", "plain", 2)],
            1000,
        )

    assert store.get("t", "row", col("a")) is None


def test_scan_range_sorted_order(store):
    """Test that scans return columns in composite key order."""
    for value in (3, 1, 5, 2, 4):
        store.put("t", "row", col(value), f"v{value}", 1000 + value)

    results = store.scan_range("t", "row")

    assert [k.get(0) for k, _ in results] == [1, 2, 3, 4, 5]
    assert [v for _, v in results] == ["v1", "v2", "v3", "v4", "v5"]


def test_scan_range_bounds_are_inclusive(store):
    """Test start and end bounds both include an exactly matching column."""
    for i in range(10):
        store.put("t", "row", col(i), i, 1000)

    results = store.scan_range("t", "row", start=col(3), end=col(7))

    assert [k.get(0) for k, _ in results] == [3, 4, 5, 6, 7]


def test_scan_range_open_ended(store):
    """Test scans with only one bound."""
    for i in range(5):
        store.put("t", "row", col(i), i, 1000)

    assert [k.get(0) for k, _ in store.scan_range("t", "row", start=col(2))] == [2, 3, 4]
    assert [k.get(0) for k, _ in store.scan_range("t", "row", end=col(2))] == [0, 1, 2]


def test_scan_range_reversed_and_limit(store):
    """Test reversed scans walk from end to start and stop at limit."""
    for i in range(10):
        store.put("t", "row", col(i), i, 1000)

    results = store.scan_range("t", "row", start=col(2), end=col(8), reversed=True, limit=3)

    assert [k.get(0) for k, _ in results] == [8, 7, 6]


def test_scan_range_limit_counts_live_columns_only(store):
    """Test that tombstones are skipped and do not use up the limit."""
    for i in range(6):
        store.put("t", "row", col(i), i, 1000)
    store.delete("t", "row", col(0), 1001)
    store.delete("t", "row", col(1), 1001)

    results = store.scan_range("t", "row", limit=2)

    assert [k.get(0) for k, _ in results] == [2, 3]


def test_scan_range_empty_cases(store):
    """Test unknown rows and inverted bounds return nothing."""
    store.put("t", "row", col(1), 1, 1000)

    assert store.scan_range("t", "missing") == []
    assert store.scan_range("t", "row", start=col(5), end=col(1)) == []


def test_scan_range_rejects_non_positive_limit(store):
    """Test that a zero or negative limit is an error at the store level."""
    with pytest.raises(ValueError):
        store.scan_range("t", "row", limit=0)


def test_batch_commit_applies_all(store):
    """Test a batch applies every mutation at one timestamp."""
    store.put("t", "row", col("old"), "x", 1000)

    batch = store.batch()
    batch.put("t", "row", col("a"), 1)
    batch.put("t", "other", col("b"), 2)
    batch.delete("t", "row", col("old"))

    assert len(batch) == 3
    assert store.get("t", "row", col("a")) is None

    assert batch.commit(2000) == 3
    assert store.get("t", "row", col("a")) == 1
    assert store.get("t", "other", col("b")) == 2
    assert store.get("t", "row", col("old")) is None


def test_batch_commits_once(store):
    """Test a committed batch can neither be reused nor extended."""
    batch = store.batch()
    batch.put("t", "row", col("a"), 1)
    batch.commit(1000)

    with pytest.raises(RuntimeError):
        batch.commit(1001)
    with pytest.raises(RuntimeError):
        batch.put("t", "row", col("b"), 2)


def test_empty_batch_commit(store):
    """Test committing an empty batch is a no-op."""
    assert store.batch().commit(1000) == 0


def test_batch_put_none_rejected(store):
    """Test that a batch refuses to schedule a None value."""
    with pytest.raises(ValueError):
        store.batch().put("t", "row", col("a"), None)


def test_partial_batch_failure(store, monkeypatch):
    """Test that a failure mid-batch reports how much was applied."""
    fail_after(store, monkeypatch, 1)

    batch = store.batch()
    batch.put("t", "row", col("a"), 1)
    batch.put("t", "row", col("b"), 2)
    batch.put("t", "row", col("c"), 3)

    with pytest.raises(PartialBatchFailure) as excinfo:
        batch.commit(1000)

    assert excinfo.value.applied == 1
    assert excinfo.value.total == 3
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert store.get("t", "row", col("a")) == 1
    assert store.get("t", "row", col("b")) is None


def test_row_keys_skip_rows_with_only_tombstones(store):
    """Test row_keys lists rows that still hold live columns."""
    store.put("t", "r1", col("a"), 1, 1000)
    store.put("t", "r2", col("a"), 1, 1000)
    store.delete("t", "r2", col("a"), 1001)

    assert store.row_keys("t") == ["r1"]
    assert store.row_keys("missing") == []


def test_closed_store_is_unavailable():
    """Test every operation on a closed store raises StoreUnavailable."""
    store = SortedColumnStore()
    store.close()

    assert store.closed
    with pytest.raises(StoreUnavailable):
        store.put("t", "row", col("a"), 1, 1000)
    with pytest.raises(StoreUnavailable):
        store.get("t", "row", col("a"))
    with pytest.raises(StoreUnavailable):
        store.scan_range("t", "row")


def test_context_manager_closes():
    """Test the store closes on context exit."""
    with SortedColumnStore() as store:
        store.put("t", "row", col("a"), 1, 1000)

    assert store.closed
