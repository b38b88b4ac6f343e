"""PUBLISH packets and the two-byte acknowledgements (PUBACK, PUBREC, PUBREL, PUBCOMP)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

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

StringLike = Union[str, bytes, None]


@dataclass
class PublishPacket:
    """The fields of a deserialized PUBLISH packet."""

    topic: bytes
    payload: bytes
    qos: int = 0
    retained: bool = False
    dup: bool = False
    packet_id: int = 0


@dataclass
class Ack:
    """The fields of a deserialized acknowledgement packet."""

    packet_type: int
    dup: bool
    packet_id: int


def _as_bytes(value: StringLike) -> bytes:
    if value is None:
        return b""
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _body_end(reader: PacketReader) -> int:
    rem_len = reader.read_remaining_length()
    end = reader.pos + rem_len
    if end > len(reader.data):
        raise PacketReadError("packet is shorter than its remaining length")
    return end


def publish_length(qos: int, topic: StringLike, payload_len: int) -> int:
    """Remaining length of a PUBLISH packet; QoS 0 omits the packet id."""
    length = 2 + len(_as_bytes(topic)) + payload_len
    if qos > 0:
        length += 2
    return length


def serialize_publish(
    topic: StringLike,
    payload: bytes = b"",
    qos: int = 0,
    retained: bool = False,
    dup: bool = False,
    packet_id: int = 0,
    buflen: Optional[int] = None,
) -> bytes:
    """Serialize a PUBLISH packet; raises BufferTooShortError if over ``buflen``."""
    payload = bytes(payload)
    rem_len = publish_length(qos, topic, len(payload))
    if buflen is not None and packet_length(rem_len) > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")
    header = Header(PacketType.PUBLISH, dup=dup, qos=qos, retain=retained)
    out = bytearray([header.to_byte()])
    out += encode_length(rem_len)
    out += encode_string(_as_bytes(topic))
    if qos > 0:
        out += encode_int(packet_id)
    out += payload
    return bytes(out)


def deserialize_publish(buf: bytes) -> PublishPacket:
    """Parse a PUBLISH packet; raises PacketReadError if it is invalid."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.PUBLISH:
        raise PacketReadError("not a PUBLISH packet")
    end = _body_end(reader)
    topic = reader.read_string(end)
    packet_id = 0
    if header.qos > 0:
        if reader.remaining(end) < 2:
            raise PacketReadError("PUBLISH packet id is missing")
        packet_id = reader.read_int()
    payload = reader.data[reader.pos:end]
    return PublishPacket(
        topic=topic,
        payload=payload,
        qos=header.qos,
        retained=header.retain,
        dup=header.dup,
        packet_id=packet_id,
    )


def serialize_ack(
    packet_type: int,
    dup: bool = False,
    packet_id: int = 0,
    buflen: Optional[int] = None,
) -> bytes:
    """Serialize an acknowledgement carrying only a packet id.

    PUBREL packets get QoS 1 in their header, as the protocol requires.
    """
    if buflen is not None and buflen < 4:
        raise BufferTooShortError("buffer too short for an ack packet")
    qos = 1 if packet_type == PacketType.PUBREL else 0
    header = Header(packet_type, dup=dup, qos=qos)
    return bytes([header.to_byte()]) + encode_length(2) + encode_int(packet_id)


def deserialize_ack(buf: bytes) -> Ack:
    """Parse any acknowledgement packet; the packet type is not checked."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    end = _body_end(reader)
    if reader.remaining(end) < 2:
        raise PacketReadError("ack packet is too short")
    return Ack(packet_type=header.packet_type, dup=header.dup, packet_id=reader.read_int())


def serialize_puback(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Serialize a PUBACK packet."""
    return serialize_ack(PacketType.PUBACK, False, packet_id, buflen)


def serialize_pubrel(dup: bool, packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Serialize a PUBREL packet."""
    return serialize_ack(PacketType.PUBREL, dup, packet_id, buflen)


def serialize_pubcomp(packet_id: int, buflen: Optional[int] = None) -> bytes:
    """Serialize a PUBCOMP packet."""
    return serialize_ack(PacketType.PUBCOMP, False, packet_id, buflen)