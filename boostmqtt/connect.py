"""CONNECT, CONNACK, DISCONNECT and PINGREQ packet serialization."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

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

_FLAG_CLEAN_SESSION = 0x02
_FLAG_WILL = 0x04
_FLAG_WILL_RETAIN = 0x20
_FLAG_PASSWORD = 0x40
_FLAG_USERNAME = 0x80
_WILL_QOS_SHIFT = 3


class ConnackCode(enum.IntEnum):
    """Return codes carried by a CONNACK packet."""

    CONNECTION_ACCEPTED = 0
    UNACCEPTABLE_PROTOCOL = 1
    CLIENTID_REJECTED = 2
    SERVER_UNAVAILABLE = 3
    BAD_USERNAME_OR_PASSWORD = 4
    NOT_AUTHORIZED = 5


@dataclass
class WillOptions:
    """Last Will and Testament settings for a CONNECT packet."""

    topic_name: StringLike = None
    message: StringLike = None
    retained: bool = False
    qos: int = 0


@dataclass
class ConnectOptions:
    """Options of a CONNECT packet.

    Strings may be given as ``str`` or ``bytes``; ``None`` means absent.
    Deserialized options hold ``bytes``.
    """

    mqtt_version: int = 4
    client_id: StringLike = None
    keep_alive_interval: int = 60
    clean_session: bool = True
    will_flag: bool = False
    will: WillOptions = field(default_factory=WillOptions)
    username: StringLike = None
    password: StringLike = None


def _strlen(value: StringLike) -> int:
    if value is None:
        return 0
    return len(value.encode("utf-8") if isinstance(value, str) else value)


def _check_fits(total: int, buflen: Optional[int]) -> None:
    if buflen is not None and total > buflen:
        raise BufferTooShortError("packet does not fit in the buffer")


def connect_length(options: ConnectOptions) -> int:
    """Remaining length of the CONNECT packet built from ``options``."""
    if options.mqtt_version == 3:
        length = 12
    elif options.mqtt_version == 4:
        length = 10
    else:
        length = 0
    length += _strlen(options.client_id) + 2
    if options.will_flag:
        length += _strlen(options.will.topic_name) + 2
        length += _strlen(options.will.message) + 2
    if options.username is not None:
        length += _strlen(options.username) + 2
    if options.password is not None:
        length += _strlen(options.password) + 2
    return length


def serialize_connect(options: ConnectOptions, buflen: Optional[int] = None) -> bytes:
    """Serialize a CONNECT packet; raises BufferTooShortError if over ``buflen``."""
    if options.mqtt_version not in (3, 4):
        raise ValueError(f"unsupported MQTT version {options.mqtt_version}")
    rem_len = connect_length(options)
    _check_fits(packet_length(rem_len), buflen)

    out = bytearray([Header(PacketType.CONNECT).to_byte()])
    out += encode_length(rem_len)
    if options.mqtt_version == 4:
        out += encode_string("MQTT") + bytes([4])
    else:
        out += encode_string("MQIsdp") + bytes([3])

    flags = 0
    if options.clean_session:
        flags |= _FLAG_CLEAN_SESSION
    if options.will_flag:
        flags |= _FLAG_WILL
        flags |= (options.will.qos & 0x03) << _WILL_QOS_SHIFT
        if options.will.retained:
            flags |= _FLAG_WILL_RETAIN
    if options.username is not None:
        flags |= _FLAG_USERNAME
    if options.password is not None:
        flags |= _FLAG_PASSWORD

    out.append(flags)
    out += encode_int(options.keep_alive_interval)
    out += encode_string(options.client_id)
    if options.will_flag:
        out += encode_string(options.will.topic_name)
        out += encode_string(options.will.message)
    if options.username is not None:
        out += encode_string(options.username)
    if options.password is not None:
        out += encode_string(options.password)
    return bytes(out)


def check_version(protocol: Union[str, bytes], version: int) -> bool:
    """Whether a protocol name and version form a valid combination.

    Only the first ``len(protocol)`` characters of the expected name are compared.
    """
    raw = protocol.encode("utf-8") if isinstance(protocol, str) else bytes(protocol)
    if version == 3:
        expected = b"MQIsdp"
    elif version == 4:
        expected = b"MQTT"
    else:
        return False
    n = min(len(expected), len(raw))
    return raw[:n] == expected[:n]


def deserialize_connect(buf: bytes) -> ConnectOptions:
    """Parse a CONNECT packet; raises PacketReadError if it is invalid."""
    reader = PacketReader(buf)
    end = len(reader.data)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.CONNECT:
        raise PacketReadError("not a CONNECT packet")
    reader.read_remaining_length()

    protocol = reader.read_string(end)
    version = reader.read_char()
    if not check_version(protocol, version):
        raise PacketReadError(f"unrecognised protocol {protocol!r} version {version}")

    flags = reader.read_char()
    options = ConnectOptions(
        mqtt_version=version,
        clean_session=bool(flags & _FLAG_CLEAN_SESSION),
    )
    options.keep_alive_interval = reader.read_int()
    options.client_id = reader.read_string(end)
    options.will_flag = bool(flags & _FLAG_WILL)
    if options.will_flag:
        options.will = WillOptions(
            qos=(flags >> _WILL_QOS_SHIFT) & 0x03,
            retained=bool(flags & _FLAG_WILL_RETAIN),
        )
        options.will.topic_name = reader.read_string(end)
        options.will.message = reader.read_string(end)
    if flags & _FLAG_USERNAME:
        if reader.remaining(end) < 3:
            raise PacketReadError("username flag set but no username supplied")
        options.username = reader.read_string(end)
        if flags & _FLAG_PASSWORD:
            if reader.remaining(end) < 3:
                raise PacketReadError("password flag set but no password supplied")
            options.password = reader.read_string(end)
    elif flags & _FLAG_PASSWORD:
        raise PacketReadError("password flag set without username")
    return options


def serialize_connack(
    connack_rc: int, session_present: bool = False, buflen: Optional[int] = None
) -> bytes:
    """Serialize a CONNACK packet."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("buffer too short for CONNACK")
    out = bytearray([Header(PacketType.CONNACK).to_byte()])
    out += encode_length(2)
    out.append(0x01 if session_present else 0x00)
    out.append(int(connack_rc) & 0xFF)
    return bytes(out)


def deserialize_connack(buf: bytes) -> Tuple[bool, int]:
    """Parse a CONNACK packet into ``(session_present, return_code)``."""
    reader = PacketReader(buf)
    header = Header.from_byte(reader.read_char())
    if header.packet_type != PacketType.CONNACK:
        raise PacketReadError("not a CONNACK packet")
    rem_len = reader.read_remaining_length()
    if rem_len < 2:
        raise PacketReadError("CONNACK packet is too short")
    flags = reader.read_char()
    return_code = reader.read_char()
    return bool(flags & 0x01), return_code


def serialize_zero(packet_type: int, buflen: Optional[int] = None) -> bytes:
    """Serialize a packet made of a header byte and a zero remaining length."""
    if buflen is not None and buflen < 2:
        raise BufferTooShortError("buffer too short for packet")
    return bytes([Header(packet_type).to_byte()]) + encode_length(0)


def serialize_disconnect(buflen: Optional[int] = None) -> bytes:
    """Serialize a DISCONNECT packet."""
    return serialize_zero(PacketType.DISCONNECT, buflen)


def serialize_pingreq(buflen: Optional[int] = None) -> bytes:
    """Serialize a PINGREQ packet."""
    return serialize_zero(PacketType.PINGREQ, buflen)