"""MQTT 3.1/3.1.1 packet codec: serializers, deserializers, stream readers and packet descriptions."""

__version__ = "0.1.0"