import pytest

from boostmqtt.packet import (
    BufferTooShortError,
    Header,
    PacketReadError,
    PacketType,
    packet_length,
)
from boostmqtt.subscribe import (
    deserialize_suback,
    deserialize_subscribe,
    serialize_suback,
    serialize_subscribe,
    subscribe_length,
)


def test_subscribe_wire_bytes():
    assert serialize_subscribe(1, ["a"], [0]) == b"\x82\x06\x00\x01\x00\x01a\x00"


def test_suback_wire_bytes():
    assert serialize_suback(1, [1]) == b"\x90\x03\x00\x01\x01"


def test_subscribe_header_has_qos_one_and_dup():
    header = Header.from_byte(serialize_subscribe(5, ["x"], [2], dup=True)[0])
    assert header.packet_type == PacketType.SUBSCRIBE
    assert header.qos == 1
    assert header.dup is True


def test_subscribe_round_trip_multiple_filters():
    filters = ["home/+/temp", b"office/#", "dev/x"]
    data = serialize_subscribe(77, filters, [0, 1, 2])
    packet = deserialize_subscribe(data)
    assert packet.packet_id == 77
    assert packet.dup is False
    assert packet.topic_filters == [b"home/+/temp", b"office/#", b"dev/x"]
    assert packet.requested_qos == [0, 1, 2]


def test_subscribe_length_matches_serialized_size():
    filters = ["a/b", "cc/dd/ee"]
    data = serialize_subscribe(1, filters, [1, 1])
    assert len(data) == packet_length(subscribe_length(filters))


def test_subscribe_length_grows_with_filters():
    assert subscribe_length(["ab", "cd"]) > subscribe_length(["ab"])
    assert subscribe_length([]) == 2


def test_subscribe_mismatched_lengths():
    with pytest.raises(ValueError):
        serialize_subscribe(1, ["a", "b"], [0])


def test_subscribe_buffer_too_short():
    with pytest.raises(BufferTooShortError):
        serialize_subscribe(1, ["a/long/topic"], [0], buflen=8)


def test_deserialize_subscribe_missing_qos():
    with pytest.raises(PacketReadError):
        deserialize_subscribe(b"\x82\x05\x00\x01\x00\x01a")


def test_deserialize_subscribe_max_count():
    data = serialize_subscribe(1, ["a", "b"], [0, 0])
    with pytest.raises(PacketReadError):
        deserialize_subscribe(data, max_count=1)
    assert len(deserialize_subscribe(data, max_count=2).topic_filters) == 2


def test_deserialize_subscribe_rejects_other_type():
    with pytest.raises(PacketReadError):
        deserialize_subscribe(serialize_suback(1, [0]))


def test_suback_round_trip_includes_failure_code():
    suback = deserialize_suback(serialize_suback(300, [0, 1, 2, 0x80]))
    assert suback.packet_id == 300
    assert suback.granted_qos == [0, 1, 2, 0x80]


def test_suback_buffer_too_short():
    with pytest.raises(BufferTooShortError):
        serialize_suback(1, [0, 1, 2], buflen=4)


def test_deserialize_suback_max_count():
    data = serialize_suback(1, [0, 1])
    with pytest.raises(PacketReadError):
        deserialize_suback(data, max_count=1)
    assert deserialize_suback(data, max_count=2).granted_qos == [0, 1]


def test_deserialize_suback_rejects_other_type():
    with pytest.raises(PacketReadError):
        deserialize_suback(serialize_subscribe(1, ["a"], [0]))


def test_deserialize_suback_truncated():
    data = serialize_suback(1, [0, 1, 2])
    with pytest.raises(PacketReadError):
        deserialize_suback(data[:-2])