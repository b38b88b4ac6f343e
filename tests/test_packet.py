import io

import pytest

from boostmqtt.packet import (
    BufferTooShortError,
    Header,
    MQTTPacketError,
    NonBlockingReader,
    PacketReadError,
    PacketReader,
    PacketType,
    decode_length,
    decode_length_from,
    encode_int,
    encode_length,
    encode_string,
    packet_length,
    read_packet,
)

LENGTHS = [0, 1, 127, 128, 300, 16383, 16384, 2097150, 268435455]


@pytest.mark.parametrize("value", LENGTHS)
def test_length_round_trip(value):
    encoded = encode_length(value)
    assert decode_length_from(encoded) == (value, len(encoded))


def test_length_boundaries_use_spec_widths():
    assert len(encode_length(127)) == 1
    assert len(encode_length(128)) == 2
    assert len(encode_length(16384)) == 3
    assert encode_length(128) == b"\x80\x01"


def test_decode_length_with_offset():
    buf = b"\xaa\xbb" + encode_length(16384)
    assert decode_length_from(buf, 2) == (16384, 3)


def test_decode_length_callable():
    data = iter(encode_length(300))
    assert decode_length(lambda: next(data, None)) == (300, 2)


def test_decode_length_too_long():
    with pytest.raises(PacketReadError):
        decode_length_from(b"\xff\xff\xff\xff\x01")


def test_decode_length_truncated():
    with pytest.raises(PacketReadError):
        decode_length_from(b"\x80")


def test_encode_length_negative():
    with pytest.raises(ValueError):
        encode_length(-1)


@pytest.mark.parametrize("rem_len", [0, 10, 126, 127, 200, 16382, 16383, 100000])
def test_packet_length_matches_encoding(rem_len):
    assert packet_length(rem_len) == 1 + len(encode_length(rem_len + 1)) + rem_len


def test_header_round_trip_all_fields():
    for ptype in PacketType:
        for qos in range(3):
            for dup in (False, True):
                for retain in (False, True):
                    header = Header(ptype, dup, qos, retain)
                    assert Header.from_byte(header.to_byte()) == header


def test_header_pingreq_byte():
    assert Header(PacketType.PINGREQ).to_byte() == 0xC0
    assert Header.from_byte(0xC0).packet_type == PacketType.PINGREQ


def test_encode_int():
    assert encode_int(0x1234) == b"\x12\x34"
    assert encode_int(65535) == b"\xff\xff"


def test_encode_string():
    assert encode_string("MQTT") == b"\x00\x04MQTT"
    assert encode_string(b"") == b"\x00\x00"
    assert encode_string(None) == b"\x00\x00"


def test_reader_reads_fields_in_order():
    data = bytes([7]) + encode_int(513) + encode_string("topic/a")
    reader = PacketReader(data)
    assert reader.read_char() == 7
    assert reader.read_int() == 513
    assert reader.read_string() == b"topic/a"
    assert reader.remaining() == 0


def test_reader_offset_and_remaining_length():
    data = b"\x30" + encode_length(300)
    reader = PacketReader(data, 1)
    assert reader.read_remaining_length() == 300
    assert reader.pos == len(data)


def test_reader_string_past_end():
    data = encode_string("abcdef")
    reader = PacketReader(data)
    with pytest.raises(PacketReadError):
        reader.read_string(end=4)


def test_reader_string_without_length():
    reader = PacketReader(b"\x00")
    with pytest.raises(PacketReadError):
        reader.read_string()


def test_reader_char_past_end():
    reader = PacketReader(b"")
    with pytest.raises(PacketReadError):
        reader.read_char()


def test_reader_int_past_end():
    reader = PacketReader(b"\x01")
    with pytest.raises(PacketReadError):
        reader.read_int()


def _publish_packet(body):
    return bytes([Header(PacketType.PUBLISH).to_byte()]) + encode_length(len(body)) + body


def test_read_packet_whole():
    packet = _publish_packet(encode_string("a/b") + b"hello")
    assert read_packet(io.BytesIO(packet).read, 260) == (PacketType.PUBLISH, packet)


def test_read_packet_without_body():
    packet = bytes([Header(PacketType.PINGRESP).to_byte()]) + encode_length(0)
    assert read_packet(io.BytesIO(packet).read, 260) == (PacketType.PINGRESP, packet)


def test_read_packet_too_big():
    packet = _publish_packet(b"x" * 100)
    with pytest.raises(BufferTooShortError):
        read_packet(io.BytesIO(packet).read, 50)


def test_read_packet_truncated_body():
    packet = _publish_packet(b"x" * 10)
    with pytest.raises(PacketReadError):
        read_packet(io.BytesIO(packet[:-3]).read, 260)


def test_read_packet_empty_stream():
    with pytest.raises(MQTTPacketError):
        read_packet(io.BytesIO(b"").read, 260)


class _Chunks:
    def __init__(self, chunks):
        self.chunks = list(chunks)

    def __call__(self, size):
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if chunk is None:
            return None
        head, rest = chunk[:size], chunk[size:]
        if rest:
            self.chunks.insert(0, rest)
        return head


def test_nonblocking_reader_assembles_in_pieces():
    packet = _publish_packet(encode_string("t") + b"payload")
    pieces = [packet[:1], b"", packet[1:2], b"", packet[2:5], b"", packet[5:]]
    reader = NonBlockingReader(_Chunks(pieces), 260)
    results = []
    for _ in range(20):
        got = reader.poll()
        if got is not None:
            results.append(got)
            break
    assert results == [(PacketType.PUBLISH, packet)]


def test_nonblocking_reader_returns_none_without_data():
    reader = NonBlockingReader(_Chunks([]), 260)
    assert reader.poll() is None


def test_nonblocking_reader_error_resets():
    packet = bytes([Header(PacketType.PINGRESP).to_byte()]) + encode_length(0)
    reader = NonBlockingReader(_Chunks([packet[:1], None, packet]), 260)
    assert reader.poll() is None or True
    with pytest.raises(PacketReadError):
        reader.poll()
    assert reader.poll() == (PacketType.PINGRESP, packet)


def test_nonblocking_reader_too_big():
    packet = _publish_packet(b"x" * 100)
    reader = NonBlockingReader(_Chunks([packet]), 20)
    with pytest.raises(BufferTooShortError):
        reader.poll()


def test_nonblocking_reader_bad_length():
    reader = NonBlockingReader(_Chunks([b"\x30\xff\xff\xff\xff\x01"]), 260)
    with pytest.raises(PacketReadError):
        reader.poll()