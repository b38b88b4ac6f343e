"""Low-level MQTT packet primitives: fixed header, remaining length, strings and readers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

MAX_REMAINING_LENGTH_BYTES = 4


class PacketType(enum.IntEnum):
    """MQTT control packet types."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14


class MQTTPacketError(Exception):
    """Base class for packet encoding and decoding errors."""


class BufferTooShortError(MQTTPacketError):
    """The packet does not fit in the buffer size allowed for it."""


class PacketReadError(MQTTPacketError):
    """The packet data is malformed, truncated or could not be read."""


@dataclass(frozen=True)
class Header:
    """The first byte of every MQTT packet."""

    packet_type: int
    dup: bool = False
    qos: int = 0
    retain: bool = False

    def to_byte(self) -> int:
        """Pack the header fields into a single byte."""
        return (
            ((int(self.packet_type) & 0x0F) << 4)
            | ((1 if self.dup else 0) << 3)
            | ((self.qos & 0x03) << 1)
            | (1 if self.retain else 0)
        )

    @classmethod
    def from_byte(cls, byte: int) -> "Header":
        """Unpack a header byte into its fields."""
        return cls(
            packet_type=(byte >> 4) & 0x0F,
            dup=bool((byte >> 3) & 0x01),
            qos=(byte >> 1) & 0x03,
            retain=bool(byte & 0x01),
        )


def encode_length(length: int) -> bytes:
    """Encode a remaining-length value in the MQTT variable-length format."""
    if length < 0:
        raise ValueError("remaining length cannot be negative")
    out = bytearray()
    while True:
        digit = length % 128
        length //= 128
        if length > 0:
            digit |= 0x80
        out.append(digit)
        if length == 0:
            return bytes(out)


def decode_length(read_byte: Callable[[], Optional[int]]) -> Tuple[int, int]:
    """Decode a remaining length, pulling bytes from ``read_byte``.

    ``read_byte`` returns the next byte as an int, or None when no data is left.
    Returns ``(value, bytes_consumed)``.
    """
    value = 0
    multiplier = 1
    count = 0
    while True:
        count += 1
        if count > MAX_REMAINING_LENGTH_BYTES:
            raise PacketReadError("remaining length field is longer than 4 bytes")
        byte = read_byte()
        if byte is None:
            raise PacketReadError("remaining length field is truncated")
        value += (byte & 127) * multiplier
        multiplier *= 128
        if not byte & 128:
            return value, count


def decode_length_from(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a remaining length stored in ``buf`` starting at ``offset``."""
    source = iter(bytes(buf[offset:]))
    return decode_length(lambda: next(source, None))


def packet_length(rem_len: int) -> int:
    """Total packet size for a given remaining length, header byte included."""
    rem_len += 1
    if rem_len < 128:
        rem_len += 1
    elif rem_len < 16384:
        rem_len += 2
    elif rem_len < 2097151:
        rem_len += 3
    else:
        rem_len += 4
    return rem_len


def encode_int(value: int) -> bytes:
    """Encode a 16-bit big-endian integer."""
    return (value & 0xFFFF).to_bytes(2, "big")


def encode_string(data: Union[str, bytes, None]) -> bytes:
    """Encode a length-prefixed MQTT string; None or empty gives a zero length."""
    if data is None:
        return encode_int(0)
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return encode_int(len(raw)) + raw


class PacketReader:
    """Cursor over a packet buffer that reads MQTT fields in order."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = bytes(data)
        self.pos = offset

    def _end(self, end: Optional[int]) -> int:
        return len(self.data) if end is None else end

    def read_char(self) -> int:
        """Read one byte."""
        if self.pos >= len(self.data):
            raise PacketReadError("unexpected end of packet")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_int(self) -> int:
        """Read a 16-bit big-endian integer."""
        if self.pos + 2 > len(self.data):
            raise PacketReadError("unexpected end of packet")
        value = int.from_bytes(self.data[self.pos:self.pos + 2], "big")
        self.pos += 2
        return value

    def read_string(self, end: Optional[int] = None) -> bytes:
        """Read a length-prefixed string that must finish at or before ``end``."""
        limit = self._end(end)
        if limit - self.pos <= 1:
            raise PacketReadError("not enough data for a string length")
        length = self.read_int()
        if self.pos + length > limit:
            raise PacketReadError("string runs past the end of the packet")
        value = self.data[self.pos:self.pos + length]
        self.pos += length
        return value

    def read_remaining_length(self) -> int:
        """Read the variable-length remaining-length field."""
        value, consumed = decode_length_from(self.data, self.pos)
        self.pos += consumed
        return value

    def remaining(self, end: Optional[int] = None) -> int:
        """Number of bytes between the cursor and ``end``."""
        return self._end(end) - self.pos


def read_packet(read: Callable[[int], Optional[bytes]], buflen: int) -> Tuple[int, bytes]:
    """Read a whole packet through ``read(n)``.

    Returns ``(packet_type, packet_bytes)``; raises if the packet is truncated
    or would not fit in ``buflen`` bytes.
    """

    def read_byte() -> Optional[int]:
        chunk = read(1)
        return chunk[0] if chunk else None

    header = read(1) or b""
    if len(header) != 1:
        raise PacketReadError("no header byte available")
    rem_len, _ = decode_length(read_byte)
    packet = bytearray(header) + encode_length(rem_len)
    if len(packet) + rem_len > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")
    if rem_len:
        body = read(rem_len) or b""
        if len(body) != rem_len:
            raise PacketReadError("packet body is truncated")
        packet += body
    return Header.from_byte(packet[0]).packet_type, bytes(packet)


class NonBlockingReader:
    """Assemble a packet across several calls to a non-blocking transport.

    ``getfn(n)`` returns up to ``n`` bytes, ``b""`` when nothing is available
    yet, or None on a transport error.
    """

    def __init__(self, getfn: Callable[[int], Optional[bytes]], buflen: int) -> None:
        self._getfn = getfn
        self.buflen = buflen
        self._reset()

    def _reset(self) -> None:
        self._state = 0
        self._buf = bytearray()
        self._len = 0
        self._rem_len = 0
        self._multiplier = 1

    def _get(self, size: int) -> bytes:
        data = self._getfn(size)
        if data is None:
            self._reset()
            raise PacketReadError("transport error")
        return bytes(data[:size])

    def _decode_step(self) -> bool:
        while True:
            if self._len >= MAX_REMAINING_LENGTH_BYTES:
                self._reset()
                raise PacketReadError("remaining length field is longer than 4 bytes")
            data = self._get(1)
            if not data:
                return False
            byte = data[0]
            self._len += 1
            self._rem_len += (byte & 127) * self._multiplier
            self._multiplier *= 128
            if not byte & 128:
                return True

    def poll(self) -> Optional[Tuple[int, bytes]]:
        """Advance the read; return ``(packet_type, packet)`` once complete, else None."""
        if self._state == 0:
            data = self._get(1)
            if not data:
                return None
            self._buf = bytearray(data)
            self._len = 0
            self._rem_len = 0
            self._multiplier = 1
            self._state = 1
        if self._state == 1:
            if not self._decode_step():
                return None
            self._buf += encode_length(self._rem_len)
            if len(self._buf) + self._rem_len > self.buflen:
                self._reset()
                raise BufferTooShortError("packet does not fit in the buffer")
            self._state = 2
        if self._rem_len:
            data = self._get(self._rem_len)
            if not data:
                return None
            self._buf += data
            self._rem_len -= len(data)
            if self._rem_len:
                return None
        packet = bytes(self._buf)
        self._reset()
        return Header.from_byte(packet[0]).packet_type, packet