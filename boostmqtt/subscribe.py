"""SUBSCRIBE and SUBACK packet serialization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from boostmqtt.packet import (
    BufferTooShortError,
    Header,
    PacketReader,
    PacketReadError,
    PacketType,
    encode_int,
    encode_length,
    encode_string,
    packet_length,
)

StringLike = Union[str, bytes]


@dataclass
class SubscribePacket:
    """The fields of a deserialized SUBSCRIBE packet."""

    dup: bool
    packet_id: int
    topic_filters: List[bytes] = field(default_factory=list)
    requested_qos: List[int] = field(default_factory=list)


@dataclass
class Suback:
    """The fields of a deserialized SUBACK packet."""

    packet_id: int
    granted_qos: List[int] = field(default_factory=list)


def _as_bytes(value: StringLike) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _body_end(reader: PacketReader) -> int:
    rem_len = reader.read_remaining_length()
    end = reader.pos + rem_len
    if end > len(reader.data):
        raise PacketReadError("packet is shorter than its remaining length")
    return end


def subscribe_length(topic_filters: Sequence[StringLike]) -> int:
    """Remaining length of a SUBSCRIBE packet for the given filters."""
    return 2 + sum(2 + len(_as_bytes(topic)) + 1 for topic in topic_filters)


def serialize_subscribe(
    packet_id: int,
    topic_filters: Sequence[StringLike],
    requested_qos: Sequence[int],
    dup: bool = False,
    buflen: Optional[int] = None,
) -> bytes:
    """Serialize a SUBSCRIBE packet with one requested QoS per filter."""
    if len(topic_filters) != len(requested_qos):
        raise ValueError("topic_filters and requested_qos differ in length")
    rem_len = subscribe_length(topic_filters)
    if buflen is not None and packet_length(rem_len) > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")
    header = Header(PacketType.SUBSCRIBE, dup=dup, qos=1)
    out = bytearray([header.to_byte()])
    out += encode_length(rem_len)
    out += encode_int(packet_id)
    for topic, qos in zip(topic_filters, requested_qos):
        out += encode_string(_as_bytes(topic))
        out.append(int(qos) & 0xFF)
    return bytes(out)


def deserialize_subscribe(buf: bytes, max_count: Optional[int] = None) -> SubscribePacket:
    """Parse a SUBSCRIBE packet; raises PacketReadError if it is invalid."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.SUBSCRIBE:
        raise PacketReadError("not a SUBSCRIBE packet")
    end = _body_end(reader)
    packet = SubscribePacket(dup=header.dup, packet_id=reader.read_int())
    while reader.pos < end:
        if max_count is not None and len(packet.topic_filters) >= max_count:
            raise PacketReadError("more topic filters than allowed")
        topic = reader.read_string(end)
        if reader.pos >= end:
            raise PacketReadError("requested QoS byte is missing")
        packet.topic_filters.append(topic)
        packet.requested_qos.append(reader.read_char())
    return packet


def serialize_suback(
    packet_id: int, granted_qos: Sequence[int], buflen: Optional[int] = None
) -> bytes:
    """Serialize a SUBACK packet with one granted QoS per subscription."""
    count = len(granted_qos)
    if buflen is not None and buflen < 2 + count:
        raise BufferTooShortError("buffer too short for SUBACK")
    out = bytearray([Header(PacketType.SUBACK).to_byte()])
    out += encode_length(2 + count)
    out += encode_int(packet_id)
    out += bytes(int(qos) & 0xFF for qos in granted_qos)
    return bytes(out)


def deserialize_suback(buf: bytes, max_count: Optional[int] = None) -> Suback:
    """Parse a SUBACK packet; raises PacketReadError if it is invalid."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.SUBACK:
        raise PacketReadError("not a SUBACK packet")
    end = _body_end(reader)
    if reader.remaining(end) < 2:
        raise PacketReadError("SUBACK packet is too short")
    suback = Suback(packet_id=reader.read_int())
    while reader.pos < end:
        if max_count is not None and len(suback.granted_qos) >= max_count:
            raise PacketReadError("more granted QoS values than allowed")
        suback.granted_qos.append(reader.read_char())
    return suback