"""protograph: type inclusion graphs for protobuf schemas."""

__version__ = "0.1.0"
