# tests/test_cycle_unit.py
import pytest

from alive.errors import (
    DecodeError,
    ProbeIOError,
    ProbeTimeoutError,
    ShortWriteError,
    UnexpectedReplyError,
)
from alive.prober.codec import Message, encode_message
from alive.prober.fake import FakeChannel, FakeReply, FakeTransport
from alive.watch.cycle import probe_once


def _no_sleep(_seconds):
    pass


def _target(addr="192.0.2.10"):
    return FakeTransport().resolve(addr)


def test_echo_reply_gives_probe_result():
    """An echo reply comes back as a ProbeResult with the request's identifier."""
    ch = FakeChannel(script=[FakeReply()], sleep=_no_sleep)
    res = probe_once(ch, _target(), identifier=321, sequence=0, size=16, ttl=64, read_deadline=0.5)
    assert res.message.identifier == 321
    assert res.message.data == b"a" * 16
    assert res.peer == ("192.0.2.1", 0)
    assert ch.sent[0][2] == ("192.0.2.10", 0)


def test_duration_is_measured_around_send_and_read():
    clock = iter([10.0, 10.25]).__next__
    ch = FakeChannel(script=[FakeReply()], sleep=_no_sleep)
    res = probe_once(ch, _target(), identifier=1, sequence=0, read_deadline=1.0, clock=clock)
    assert res.duration == pytest.approx(0.25)
    assert res.rtt_ms == pytest.approx(250.0)


def test_no_reply_is_timeout_with_context():
    """A silent host raises ProbeTimeoutError carrying sequence and ttl."""
    ch = FakeChannel(default=None, sleep=_no_sleep)
    with pytest.raises(ProbeTimeoutError) as exc:
        probe_once(ch, _target(), identifier=1, sequence=7, ttl=64, read_deadline=0.05)
    assert exc.value.sequence == 7
    assert exc.value.ttl == 64
    assert "icmp_seq=7 ttl=64" in str(exc.value)


def test_reply_slower_than_deadline_times_out():
    ch = FakeChannel(script=[FakeReply(delay=0.5)], sleep=_no_sleep)
    with pytest.raises(ProbeTimeoutError):
        probe_once(ch, _target(), identifier=1, sequence=0, read_deadline=0.1)


def test_destination_unreachable_is_unexpected_reply():
    """A non echo reply is surfaced as UnexpectedReplyError, never a result."""
    unreach = encode_message(Message(type=3, code=1, data=b"\x00" * 32))
    ch = FakeChannel(script=[FakeReply(data=unreach)], peer=("198.51.100.1", 0), sleep=_no_sleep)
    with pytest.raises(UnexpectedReplyError) as exc:
        probe_once(ch, _target(), identifier=1, sequence=0, ttl=3, read_deadline=0.5)
    assert exc.value.reply_type == 3
    assert exc.value.peer == ("198.51.100.1", 0)
    assert "destination unreachable" in str(exc.value)
    assert "198.51.100.1" in str(exc.value)


def test_short_write():
    ch = FakeChannel(write_limit=4, sleep=_no_sleep)
    with pytest.raises(ShortWriteError) as exc:
        probe_once(ch, _target(), identifier=1, sequence=0, size=8)
    assert "got 4; want 16" in str(exc.value)


def test_garbage_reply_is_decode_error():
    ch = FakeChannel(script=[FakeReply(data=b"\x00\x01")], sleep=_no_sleep)
    with pytest.raises(DecodeError) as exc:
        probe_once(ch, _target(), identifier=1, sequence=2, ttl=64)
    assert exc.value.sequence == 2


def test_read_failure_is_io_error():
    ch = FakeChannel(script=[FakeReply(error=ConnectionRefusedError("refused"))], sleep=_no_sleep)
    with pytest.raises(ProbeIOError):
        probe_once(ch, _target(), identifier=1, sequence=0)


def test_ipv6_target_gets_v6_request():
    ch = FakeChannel(script=[FakeReply()], sleep=_no_sleep)
    ch.ip_version = 6
    res = probe_once(ch, _target("2001:db8::1"), identifier=5, sequence=0)
    assert ch.sent[0][1][0] == 128
    assert res.message.type == 129
