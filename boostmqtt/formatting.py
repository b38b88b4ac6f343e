"""Human-readable descriptions of MQTT packets, for logs and debugging."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from boostmqtt.connect import ConnectOptions, deserialize_connack, deserialize_connect
from boostmqtt.packet import Header, MQTTPacketError, PacketType
from boostmqtt.publish import PublishPacket, deserialize_ack, deserialize_publish
from boostmqtt.subscribe import deserialize_subscribe, deserialize_suback
from boostmqtt.unsubscribe import deserialize_unsubscribe, deserialize_unsuback

StringLike = Union[str, bytes, None]

PACKET_NAMES = (
    "RESERVED", "CONNECT", "CONNACK", "PUBLISH", "PUBACK", "PUBREC", "PUBREL",
    "PUBCOMP", "SUBSCRIBE", "SUBACK", "UNSUBSCRIBE", "UNSUBACK",
    "PINGREQ", "PINGRESP", "DISCONNECT",
)

_ACK_TYPES = (PacketType.PUBACK, PacketType.PUBREC, PacketType.PUBREL, PacketType.PUBCOMP)
_BARE_TYPES = (PacketType.PINGREQ, PacketType.PINGRESP, PacketType.DISCONNECT)


def _text(value: StringLike, limit: Optional[int] = None) -> str:
    if value is None:
        return ""
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if limit is not None:
        raw = raw[:limit]
    return raw.decode("utf-8", errors="replace")


def packet_name(packet_type: int) -> str:
    """Name of a packet type; 0 is RESERVED."""
    return PACKET_NAMES[int(packet_type)]


def format_connect(options: ConnectOptions) -> str:
    """Describe a CONNECT packet."""
    text = (
        f"CONNECT MQTT version {int(options.mqtt_version)}, "
        f"client id {_text(options.client_id)}, "
        f"clean session {int(bool(options.clean_session))}, "
        f"keep alive {int(options.keep_alive_interval)}"
    )
    if options.will_flag:
        will = options.will
        text += (
            f", will QoS {int(will.qos)}, will retain {int(bool(will.retained))}, "
            f"will topic {_text(will.topic_name)}, will message {_text(will.message)}"
        )
    if options.username:
        text += f", user name {_text(options.username)}"
    if options.password:
        text += f", password {_text(options.password)}"
    return text


def format_connack(connack_rc: int, session_present: bool) -> str:
    """Describe a CONNACK packet."""
    return f"CONNACK session present {int(bool(session_present))}, rc {int(connack_rc)}"


def format_publish(packet: PublishPacket) -> str:
    """Describe a PUBLISH packet; topic and payload are cut to 20 bytes."""
    return (
        f"PUBLISH dup {int(bool(packet.dup))}, QoS {int(packet.qos)}, "
        f"retained {int(bool(packet.retained))}, packet id {int(packet.packet_id)}, "
        f"topic {_text(packet.topic, 20)}, payload length {len(packet.payload)}, "
        f"payload {_text(packet.payload, 20)}"
    )


def format_ack(packet_type: int, dup: bool, packet_id: int) -> str:
    """Describe an acknowledgement packet."""
    text = f"{packet_name(packet_type)}, packet id {int(packet_id)}"
    if dup:
        text += f", dup {int(bool(dup))}"
    return text


def format_subscribe(
    dup: bool,
    packet_id: int,
    count: int,
    topic_filters: Sequence[StringLike],
    requested_qos: Sequence[int],
) -> str:
    """Describe a SUBSCRIBE packet by its first topic filter."""
    return (
        f"SUBSCRIBE dup {int(bool(dup))}, packet id {int(packet_id)} count {int(count)} "
        f"topic {_text(topic_filters[0])} qos {int(requested_qos[0])}"
    )


def format_suback(packet_id: int, count: int, granted_qos: Sequence[int]) -> str:
    """Describe a SUBACK packet by its first granted QoS."""
    return f"SUBACK packet id {int(packet_id)} count {int(count)} granted qos {int(granted_qos[0])}"


def format_unsubscribe(
    dup: bool, packet_id: int, count: int, topic_filters: Sequence[StringLike]
) -> str:
    """Describe an UNSUBSCRIBE packet by its first topic filter."""
    return (
        f"UNSUBSCRIBE dup {int(bool(dup))}, packet id {int(packet_id)} count {int(count)} "
        f"topic {_text(topic_filters[0])}"
    )


def _common(packet_type: int, buf: bytes) -> Optional[str]:
    if packet_type == PacketType.PUBLISH:
        return format_publish(deserialize_publish(buf))
    if packet_type in _ACK_TYPES:
        ack = deserialize_ack(buf)
        return format_ack(ack.packet_type, ack.dup, ack.packet_id)
    if packet_type in _BARE_TYPES:
        return packet_name(packet_type)
    return None


def _header_type(buf: bytes) -> Optional[int]:
    if not buf:
        return None
    return Header.from_byte(buf[0]).packet_type


def to_client_string(buf: bytes) -> str:
    """Describe a packet a client receives; empty if it is not one or is malformed."""
    buf = bytes(buf)
    packet_type = _header_type(buf)
    if packet_type is None:
        return ""
    try:
        if packet_type == PacketType.CONNACK:
            session_present, rc = deserialize_connack(buf)
            return format_connack(rc, session_present)
        if packet_type == PacketType.SUBACK:
            suback = deserialize_suback(buf)
            return format_suback(suback.packet_id, len(suback.granted_qos), suback.granted_qos)
        if packet_type == PacketType.UNSUBACK:
            return format_ack(PacketType.UNSUBACK, False, deserialize_unsuback(buf))
        return _common(packet_type, buf) or ""
    except (MQTTPacketError, IndexError):
        return ""


def to_server_string(buf: bytes) -> str:
    """Describe a packet a server receives; empty if it is not one or is malformed."""
    buf = bytes(buf)
    packet_type = _header_type(buf)
    if packet_type is None:
        return ""
    try:
        if packet_type == PacketType.CONNECT:
            return format_connect(deserialize_connect(buf))
        if packet_type == PacketType.SUBSCRIBE:
            sub = deserialize_subscribe(buf)
            return format_subscribe(
                sub.dup, sub.packet_id, len(sub.topic_filters), sub.topic_filters, sub.requested_qos
            )
        if packet_type == PacketType.UNSUBSCRIBE:
            unsub = deserialize_unsubscribe(buf)
            return format_unsubscribe(
                unsub.dup, unsub.packet_id, len(unsub.topic_filters), unsub.topic_filters
            )
        return _common(packet_type, buf) or ""
    except (MQTTPacketError, IndexError):
        return ""