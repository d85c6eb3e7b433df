class BytesWriter:
    """Append-only in-memory byte buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def write_byte(self, value: int) -> int:
        self._buffer.append(value)
        return 1

    def as_bytes(self) -> bytes:
        return bytes(self._buffer)
