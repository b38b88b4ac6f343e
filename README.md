# boostmqtt

A compact, dependency-free codec for MQTT 3.1 and 3.1.1 packets. It builds
and parses every control packet a client or a broker exchanges, reads whole
packets from a byte stream (blocking or non-blocking), and turns packets into
one-line descriptions for logs.

## Installation

```
pip install boostmqtt
```

To run the test suite:

```
pip install boostmqtt[test]
pytest
```

## Modules

- `boostmqtt.packet`: `PacketType`, the `Header` byte, remaining-length
  helpers (`encode_length`, `decode_length`, `decode_length_from`,
  `packet_length`), `encode_int`, `encode_string`, the `PacketReader` cursor,
  `read_packet` and `NonBlockingReader`.
- `boostmqtt.connect`: `ConnectOptions`, `WillOptions`, `ConnackCode`;
  CONNECT, CONNACK, DISCONNECT and PINGREQ packets.
- `boostmqtt.publish`: PUBLISH packets (`PublishPacket`) and the
  acknowledgements PUBACK, PUBREC, PUBREL and PUBCOMP (`Ack`).
- `boostmqtt.subscribe`: SUBSCRIBE (`SubscribePacket`) and SUBACK (`Suback`).
- `boostmqtt.unsubscribe`: UNSUBSCRIBE (`UnsubscribePacket`) and UNSUBACK.
- `boostmqtt.formatting`: `packet_name`, the `format_*` functions,
  `to_client_string` and `to_server_string`.

## Encoding and decoding

Every serializer takes an optional `buflen`; a packet that would not fit in
that many bytes raises `boostmqtt.packet.BufferTooShortError`. Malformed or
truncated input raises `boostmqtt.packet.PacketReadError`. Both derive from
`boostmqtt.packet.MQTTPacketError`.

```python
from boostmqtt.connect import ConnectOptions, serialize_connect, deserialize_connect
from boostmqtt.publish import serialize_publish, deserialize_publish

connect_packet = serialize_connect(ConnectOptions(client_id=b"sensor-1"), 260)
options = deserialize_connect(connect_packet)
print(options.client_id, options.keep_alive_interval)   # b'sensor-1' 60

raw = serialize_publish(b"sensors/temp", b"21.5", 1, False, False, 7, 260)
packet = deserialize_publish(raw)
print(packet.topic, packet.payload, packet.packet_id)   # b'sensors/temp' b'21.5' 7
```

`ConnectOptions` defaults to MQTT 3.1.1 (`mqtt_version=4`), a keep-alive of
60 seconds and a clean session. Strings may be given as `str` or `bytes`;
deserialized packets hold `bytes`. QoS 0 PUBLISH packets carry no packet id,
and `serialize_ack` sets QoS 1 in the header of a PUBREL, as the protocol
requires.

Subscriptions work the same way:

```python
from boostmqtt.subscribe import serialize_subscribe, serialize_suback, deserialize_suback

subscribe_packet = serialize_subscribe(3, [b"devices/+/commands"], [1])
suback = deserialize_suback(serialize_suback(3, [1]))
print(suback.packet_id, suback.granted_qos)   # 3 [1]
```

## Reading packets from a stream

`read_packet(read, buflen)` pulls one complete packet through a `read(n)`
callable and returns `(packet_type, packet_bytes)`:

```python
import io
from boostmqtt.connect import serialize_pingreq
from boostmqtt.packet import read_packet

stream = io.BytesIO(serialize_pingreq())
packet_type, packet = read_packet(stream.read, 260)   # (PINGREQ, b'\xc0\x00')
```

`NonBlockingReader(getfn, buflen)` assembles a packet over several calls to
`poll()`. `getfn(n)` returns up to `n` bytes, `b""` when nothing is available
yet, or `None` on a transport error; `poll()` returns `None` until a whole
packet has arrived, then `(packet_type, packet_bytes)`.

## Describing packets

```python
from boostmqtt.connect import serialize_connack
from boostmqtt.formatting import to_client_string, to_server_string
from boostmqtt.publish import serialize_publish

to_client_string(serialize_connack(0, False))
# 'CONNACK session present 0, rc 0'
to_server_string(serialize_publish(b"sensors/temp", b"21.5", 1, False, False, 7))
# 'PUBLISH dup 0, QoS 1, retained 0, packet id 7, topic sensors/temp, payload length 4, payload 21.5'
```

`to_client_string` covers the packets a client receives, `to_server_string`
those a broker receives; both return an empty string for a packet of the
other side or a malformed one. Topics and payloads in PUBLISH descriptions
are cut to 20 bytes.

## What this package does not do

boostmqtt only encodes, decodes and describes packets. It has no client that
connects to a broker, tracks sessions, dispatches subscriptions or sends
keep-alive pings, and it opens no network connections or serial ports. Feed
its readers from whatever transport you use and drive the protocol exchange
yourself.