from __future__ import annotations

from udprr.transport.errors import InvalidArgumentError


class PayloadBuffer:
    """
    Owned byte buffer with a logical length separate from its capacity.

    Data only goes in and out by copy, so callers never hold a reference
    to the backing store.
    """

    __slots__ = ("_store", "_length")

    def __init__(self, initial: bytes | None = None):
        self._store = bytearray(initial) if initial is not None else bytearray()
        self._length = len(self._store)

    @property
    def capacity(self) -> int:
        return len(self._store)

    def size(self) -> int:
        return self._length

    def __len__(self) -> int:
        return self._length

    def replace(self, data: bytes, length: int) -> None:
        if length < 0 or (length > 0 and length > len(data)):
            raise InvalidArgumentError(f"length out of bounds: {length}")

        # grow only, never shrink
        if len(self._store) < length:
            self._store = bytearray(length)
        self._store[:length] = data[:length]
        self._length = length

    def read(self) -> bytearray:
        return self._store[:self._length]

    def copy(self) -> PayloadBuffer:
        return PayloadBuffer(bytes(self._store[:self._length]))

    clone = copy

    def __bytes__(self) -> bytes:
        return bytes(self._store[:self._length])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PayloadBuffer):
            return NotImplemented
        return bytes(self) == bytes(other)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"PayloadBuffer(length={self._length}, capacity={self.capacity})"
