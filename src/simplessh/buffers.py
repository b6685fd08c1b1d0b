"""Growable byte buffer used to capture command output."""

INITIAL_CAPACITY = 128
MIN_HEADROOM = 1024
MAX_GROWTH = 65536


class OutputBuffer:
    """
    Byte buffer with amortised doubling growth and a capped growth step.

    Reads are sized from the free space (``headroom``), so the buffer decides
    how much the engine may hand over in one call. Whenever the free space
    drops below ``MIN_HEADROOM`` after an append, the capacity grows once to
    ``min(capacity * 2, capacity + MAX_GROWTH)``.

    One byte of capacity is always kept free, so ``headroom`` is
    ``capacity - len(buffer) - 1``.
    """

    def __init__(self, capacity: int = INITIAL_CAPACITY):
        if capacity < 2:
            raise ValueError(f"Buffer capacity must be at least 2 bytes, got {capacity}")
        self._data = bytearray(capacity)
        self._position = 0

    def __len__(self) -> int:
        return self._position

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def headroom(self) -> int:
        """Largest chunk the buffer accepts without growing."""
        return self.capacity - self._position - 1

    def append(self, chunk: bytes) -> None:
        """Store a chunk read from the engine, growing the buffer if needed."""
        size = len(chunk)
        if size > self.headroom:
            raise ValueError(f"Chunk of {size} bytes exceeds buffer headroom of {self.headroom}")

        self._data[self._position : self._position + size] = chunk
        self._position += size

        if self.capacity - self._position < MIN_HEADROOM:
            self._grow()

    def _grow(self) -> None:
        capacity = self.capacity
        new_capacity = min(capacity * 2, capacity + MAX_GROWTH)
        self._data.extend(bytes(new_capacity - capacity))

    def getvalue(self) -> bytes:
        """Return exactly the bytes stored, without spare capacity."""
        return bytes(self._data[: self._position])
