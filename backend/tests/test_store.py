import pytest

from backend.analytics.models import DailyAggregate, HistogramField
from backend.analytics.store import DailyAggregateStore, UnsupportedStoreError

DAY = 19797


def test_upsert_baseline_creates_then_increments(db_session):
    store = DailyAggregateStore(db_session)

    store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
    store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
    store.upsert_baseline(
        "profile-1", DAY, create={"views": 1, "total_duration": 12}, increment={"total_duration": 12}
    )
    db_session.commit()

    (record,) = store.query("profile-1", DAY, DAY)
    assert record.views == 2
    assert record.total_duration == 12
    assert db_session.query(DailyAggregate).count() == 1


def test_upsert_baseline_keys_by_profile_and_day(db_session):
    store = DailyAggregateStore(db_session)

    store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
    store.upsert_baseline("profile-1", DAY + 1, create={"views": 1}, increment={"views": 1})
    store.upsert_baseline("profile-2", DAY, create={"views": 1}, increment={"views": 1})
    db_session.commit()

    first = store.get_record_id("profile-1", DAY)
    assert first is not None
    assert len({first, store.get_record_id("profile-1", DAY + 1), store.get_record_id("profile-2", DAY)}) == 3
    assert store.get_record_id("profile-1", DAY + 2) is None


def test_add_visitor_has_set_semantics(db_session):
    store = DailyAggregateStore(db_session)
    store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
    record_id = store.get_record_id("profile-1", DAY)

    assert store.add_visitor(record_id, "a" * 64) is True
    assert store.add_visitor(record_id, "a" * 64) is False
    assert store.add_visitor(record_id, "b" * 64) is True
    db_session.commit()

    (record,) = store.query("profile-1", DAY, DAY)
    assert record.unique_visitors == {"a" * 64, "b" * 64}


def test_histogram_deltas_accumulate_per_key(db_session):
    store = DailyAggregateStore(db_session)
    store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
    record_id = store.get_record_id("profile-1", DAY)

    store.apply_histogram_delta(record_id, HistogramField.DEVICE_STATS, "mobile")
    store.apply_histogram_delta(record_id, HistogramField.DEVICE_STATS, "mobile")
    store.apply_histogram_delta(record_id, HistogramField.DEVICE_STATS, "desktop", increment=3)
    store.apply_histogram_delta(record_id, HistogramField.PROJECT_INTERACTIONS, "mobile")
    db_session.commit()

    (record,) = store.query("profile-1", DAY, DAY)
    assert record.device_stats == {"mobile": 2, "desktop": 3}
    assert record.project_interactions == {"mobile": 1}
    assert record.referrer_stats == {}


def test_query_is_inclusive_and_ordered(db_session):
    store = DailyAggregateStore(db_session)
    for day in (DAY + 2, DAY, DAY - 1, DAY + 1):
        store.upsert_baseline("profile-1", day, create={"views": 1}, increment={"views": 1})
    db_session.commit()

    assert [record.day for record in store.query("profile-1", DAY, DAY + 2)] == [DAY, DAY + 1, DAY + 2]
    assert store.query("profile-2", DAY, DAY + 2) == []


def test_sum_views_over_range(db_session):
    store = DailyAggregateStore(db_session)
    for day, views in ((DAY, 2), (DAY + 1, 3), (DAY + 5, 7)):
        for _ in range(views):
            store.upsert_baseline("profile-1", day, create={"views": 1}, increment={"views": 1})
    db_session.commit()

    assert store.sum_views("profile-1", DAY, DAY + 1) == 5
    assert store.sum_views("profile-1", DAY + 2, DAY + 4) == 0


def test_unsupported_dialect_is_rejected(db_session, monkeypatch):
    store = DailyAggregateStore(db_session)
    monkeypatch.setattr(db_session.get_bind().dialect, "name", "mssql")

    with pytest.raises(UnsupportedStoreError):
        store.upsert_baseline("profile-1", DAY, create={"views": 1}, increment={"views": 1})
