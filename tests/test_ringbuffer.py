import pytest

from sensefeed.core.ringbuffer import RingBuffer


def test_ringbuffer_keeps_newest_items_in_order() -> None:
    buf: RingBuffer[int] = RingBuffer(3)
    evicted = [buf.append(i) for i in range(5)]
    assert evicted == [None, None, None, 0, 1]
    assert buf.to_list() == [2, 3, 4]
    assert buf[0] == 2
    assert buf[-1] == 4
    assert buf.is_full


def test_ringbuffer_keep_last_returns_removed_items() -> None:
    buf: RingBuffer[int] = RingBuffer(4)
    for i in range(6):
        buf.append(i)
    removed = buf.keep_last(1)
    assert removed == [2, 3, 4]
    assert buf.to_list() == [5]
    assert buf.keep_last(5) == []
    buf.append(6)
    assert buf.to_list() == [5, 6]


def test_ringbuffer_drain_empties_buffer() -> None:
    buf: RingBuffer[str] = RingBuffer(2)
    buf.append("a")
    buf.append("b")
    assert buf.drain() == ["a", "b"]
    assert len(buf) == 0
    with pytest.raises(IndexError):
        buf[0]


def test_ringbuffer_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        RingBuffer(0)
