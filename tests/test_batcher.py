from datetime import datetime, timedelta, timezone

import pytest

from trackwire.batcher import Batcher
from trackwire.codec import encode_stored
from trackwire.errors import MessageTooLarge
from trackwire.models import Batch, Identify, Track, UserId

FIXED_TS = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
USER = UserId(user_id="usr_1")


def _track(event: str = "Foo", **kwargs) -> Track:
    return Track(user=USER, event=event, timestamp=FIXED_TS, **kwargs)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_push_accumulates_and_counts_bytes():
    batcher = Batcher()
    assert batcher.is_empty()

    first, second = _track("A"), _track("B")
    assert batcher.push(first) is None
    assert batcher.push(second) is None

    assert len(batcher) == 2
    assert not batcher.is_empty()
    assert batcher.byte_count == len(encode_stored(first)) + len(encode_stored(second)) + 2


def test_message_over_per_message_cap_raises():
    batcher = Batcher(max_message_bytes=64)
    big = _track(properties={"blob": "x" * 100})

    with pytest.raises(MessageTooLarge) as exc:
        batcher.push(big)

    assert exc.value.limit == 64
    assert exc.value.size == len(encode_stored(big))
    assert batcher.is_empty()


def test_full_batch_hands_message_back():
    message = _track()
    size = len(encode_stored(message)) + 1
    batcher = Batcher(max_batch_bytes=size * 2)

    assert batcher.push(message) is None
    assert batcher.push(message) is None
    assert batcher.push(message) is message
    assert len(batcher) == 2


def test_nested_batch_rejected():
    with pytest.raises(TypeError):
        Batcher().push(Batch())


def test_into_batch_backfills_timestamps_and_context():
    batcher = Batcher(context={"library": {"name": "trackwire"}})
    batcher.push(Track(user=USER, event="A"))
    batcher.push(Identify(user=USER, timestamp=FIXED_TS))

    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    batch = batcher.into_batch(now)

    assert isinstance(batch, Batch)
    assert batch.context == {"library": {"name": "trackwire"}}
    assert [item.timestamp for item in batch.batch] == [now, FIXED_TS]


def test_every_item_timestamped_after_finalization():
    batcher = Batcher()
    for event in ("A", "B", "C"):
        batcher.push(Track(user=USER, event=event))

    batch = batcher.into_batch()

    assert all(item.timestamp is not None for item in batch.batch)
    assert len({item.timestamp for item in batch.batch}) == 1


def test_auto_timestamp_off_leaves_items_alone():
    batcher = Batcher(auto_timestamp=False)
    batcher.push(Track(user=USER, event="A"))

    batch = batcher.into_batch()

    assert batch.batch[0].timestamp is None


def test_size_accounts_for_backfilled_timestamp():
    untimed = Track(user=USER, event="A")
    bare = len(encode_stored(untimed))

    batcher = Batcher()
    batcher.push(untimed)

    # "timestamp":"…Z" is added by into_batch(), so it is counted up front
    assert batcher.byte_count > bare + 1


def test_byte_count_covers_finalized_items():
    batcher = Batcher()
    for event in ("A", "B"):
        batcher.push(Track(user=USER, event=event))

    # A non-UTC "now" is still rendered as UTC with a "Z" suffix
    now = datetime(2024, 5, 1, 14, 30, 0, 123456, tzinfo=timezone(timedelta(hours=2)))
    batch = batcher.into_batch(now)

    finalized_size = sum(len(encode_stored(item)) + 1 for item in batch.batch)
    assert finalized_size <= batcher.byte_count
