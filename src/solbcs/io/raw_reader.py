from solbcs.errors import BcsDecodeError


class BytesReader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, data: bytes, position: int = 0):
        if position < 0 or position > len(data):
            raise BcsDecodeError(f'Offset {position} is outside of the input ({len(data)} bytes)')
        self._data = bytes(data)
        self.view = memoryview(self._data)
        self.position = position
        self._length = len(self._data)

    def __len__(self) -> int:
        return self._length

    def remaining(self) -> int:
        return self._length - self.position

    def read(self, size: int) -> bytes:
        if size > self.remaining():
            raise BcsDecodeError(
                f'Unexpected end of input: {size} bytes requested at offset '
                f'{self.position}, {self.remaining()} remaining'
            )
        result = self._data[self.position:self.position + size]
        self.position += size
        return result

    def read_byte(self) -> int:
        if self.position >= self._length:
            raise BcsDecodeError(f'Unexpected end of input at offset {self.position}')
        value = self._data[self.position]
        self.position += 1
        return value
