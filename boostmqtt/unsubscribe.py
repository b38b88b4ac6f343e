"""UNSUBSCRIBE and UNSUBACK packet serialization."""

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
from boostmqtt.publish import deserialize_ack

StringLike = Union[str, bytes]


@dataclass
class UnsubscribePacket:
    """The fields of a deserialized UNSUBSCRIBE packet."""

    dup: bool
    packet_id: int
    topic_filters: List[bytes] = field(default_factory=list)


def _as_bytes(value: StringLike) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def unsubscribe_length(topic_filters: Sequence[StringLike]) -> int:
    """Remaining length of an UNSUBSCRIBE packet for the given filters."""
    return 2 + sum(2 + len(_as_bytes(topic)) for topic in topic_filters)


def serialize_unsubscribe(
    packet_id: int,
    topic_filters: Sequence[StringLike],
    dup: bool = False,
    buflen: Optional[int] = None,
) -> bytes:
    """Serialize an UNSUBSCRIBE packet; raises BufferTooShortError if over ``buflen``."""
    rem_len = unsubscribe_length(topic_filters)
    if buflen is not None and packet_length(rem_len) > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")
    header = Header(PacketType.UNSUBSCRIBE, dup=dup, qos=1)
    out = bytearray([header.to_byte()])
    out += encode_length(rem_len)
    out += encode_int(packet_id)
    for topic in topic_filters:
        out += encode_string(_as_bytes(topic))
    return bytes(out)


def deserialize_unsubscribe(buf: bytes, max_count: Optional[int] = None) -> UnsubscribePacket:
    """Parse an UNSUBSCRIBE packet; raises PacketReadError if it is invalid."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.UNSUBSCRIBE:
        raise PacketReadError("not an UNSUBSCRIBE packet")
    rem_len = reader.read_remaining_length()
    end = reader.pos + rem_len
    if end > len(reader.data):
        raise PacketReadError("packet is shorter than its remaining length")
    packet = UnsubscribePacket(dup=header.dup, packet_id=reader.read_int())
    while reader.pos < end:
        if max_count is not None and len(packet.topic_filters) >= max_count:
            raise PacketReadError("more topic filters than allowed")
        packet.topic_filters.append(reader.read_string(end))
    return packet


def serialize_unsuback(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Serialize an UNSUBACK packet."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("buffer too short for UNSUBACK")
    out = bytearray([Header(PacketType.UNSUBACK).to_byte()])
    out += encode_length(2)
    out += encode_int(packet_id)
    return bytes(out)


def deserialize_unsuback(buf: bytes) -> int:
    """Parse an UNSUBACK packet and return its packet id."""
    ack = deserialize_ack(buf)
    if ack.packet_type != PacketType.UNSUBACK:
        raise PacketReadError("not an UNSUBACK packet")
    return ack.packet_id