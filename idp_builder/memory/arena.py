"""
Growable byte pool addressed by integer block ids.

Blocks with ids in ``[0, fast_path_size)`` are indexed through a dense
array, every other id (negative ids included) goes through a dict.
Typed numpy views into the pool are handed out by ``data``; a view taken
before the pool grows refers to the old buffer and must be fetched again.
"""

from typing import Dict, NamedTuple, Optional

import numpy as np
from loguru import logger

from idp_builder.exceptions import ArenaGrowthError


class MemoryBlock(NamedTuple):
    offset: int = -1
    size: int = -1

    @property
    def is_valid(self) -> bool:
        return self.offset > -1 and self.size > -1


INVALID_BLOCK = MemoryBlock()


class Arena:
    def __init__(
        self,
        n_bytes: int = 0,
        fast_path_size: int = 0,
        max_bytes: Optional[int] = None,
    ):
        self.max_bytes = max_bytes
        self._buffer = np.zeros(0, dtype=np.uint8)
        self._used = 0
        self._last_id: Optional[int] = None
        self._fast = np.full((max(fast_path_size, 0), 2), -1, dtype=np.int64)
        self._blocks: Dict[int, MemoryBlock] = {}
        if n_bytes > 0:
            self._reallocate(n_bytes)

    @property
    def size(self) -> int:
        """Total capacity of the pool in bytes."""
        return int(self._buffer.size)

    @property
    def used_bytes(self) -> int:
        return self._used

    @property
    def fast_path_size(self) -> int:
        return int(self._fast.shape[0])

    def __contains__(self, block_id: int) -> bool:
        return self._block(block_id).is_valid

    def _block(self, block_id: int) -> MemoryBlock:
        if 0 <= block_id < self._fast.shape[0]:
            offset, size = self._fast[block_id]
            return MemoryBlock(int(offset), int(size))
        return self._blocks.get(block_id, INVALID_BLOCK)

    def _set_block(self, block_id: int, block: MemoryBlock) -> None:
        if 0 <= block_id < self._fast.shape[0]:
            self._fast[block_id] = block
        elif block.is_valid:
            self._blocks[block_id] = block
        else:
            self._blocks.pop(block_id, None)

    def _reallocate(self, n_bytes: int) -> None:
        if self.max_bytes is not None and n_bytes > self.max_bytes:
            raise ArenaGrowthError(
                f"Arena growth to {n_bytes} bytes exceeds the limit of {self.max_bytes} bytes"
            )
        try:
            buffer = np.zeros(n_bytes, dtype=np.uint8)
        except MemoryError as e:
            raise ArenaGrowthError(f"Unable to allocate {n_bytes} bytes for arena") from e
        buffer[: self._used] = self._buffer[: self._used]
        logger.debug(f"Arena grown from {self._buffer.size} to {n_bytes} bytes")
        self._buffer = buffer

    def _ensure_room_for(self, n_bytes: int) -> None:
        total = self.size
        if self._used + n_bytes <= total:
            return
        growth_factor = 3 if n_bytes > total else 5
        self._reallocate(max(self._used + growth_factor * n_bytes, int(1.25 * total)))

    def _view(self, block: MemoryBlock, dtype=np.uint8) -> np.ndarray:
        return self._buffer[block.offset : block.offset + block.size].view(dtype)

    def place(self, block_id: int, offset: int, n_bytes: int, dtype=np.uint8):
        """
        Register a block at a fixed position of the current buffer.

        Returns None if the buffer is empty or the block would not fit.
        """
        if self._buffer.size == 0 or self._buffer.size < offset + n_bytes:
            return None
        block = MemoryBlock(offset, n_bytes)
        self._set_block(block_id, block)
        return self._view(block, dtype)

    def request(self, block_id: int, n_bytes: int, dtype=np.uint8) -> np.ndarray:
        """
        Append a block of ``n_bytes`` to the pool, growing it when needed.

        Raises
        ------
        ArenaGrowthError
            If the backing buffer cannot be enlarged.
        """
        self._ensure_room_for(n_bytes)
        block = MemoryBlock(self._used, n_bytes)
        self._set_block(block_id, block)
        self._used += n_bytes
        self._last_id = block_id
        return self._view(block, dtype)

    def request_multi(self, first_id: int, last_id: int, n_bytes: int) -> None:
        """Request one block of ``n_bytes`` for every id in ``[first_id, last_id]``."""
        for block_id in range(first_id, last_id + 1):
            self.request(block_id, n_bytes)

    def data(self, block_id: int, dtype=np.uint8) -> Optional[np.ndarray]:
        block = self._block(block_id)
        if not block.is_valid:
            return None
        return self._view(block, dtype)

    def byte_offset(self, block_id: int) -> int:
        return self._block(block_id).offset

    def byte_size(self, block_id: int) -> int:
        return self._block(block_id).size

    def release_request(self, block_id: int) -> None:
        # space is not reclaimed
        self._set_block(block_id, INVALID_BLOCK)
        if block_id == self._last_id:
            self._last_id = None

    def release_last_request(self) -> None:
        if self._last_id is None:
            return
        block = self._block(self._last_id)
        if block.is_valid and block.offset + block.size == self._used:
            self._used = block.offset
        self._set_block(self._last_id, INVALID_BLOCK)
        self._last_id = None

    def clear(self) -> None:
        self._fast.fill(-1)
        self._blocks.clear()
        self._used = 0
        self._last_id = None

    def resize(self, n_bytes: int, fast_path_size: Optional[int] = None) -> None:
        """Enlarge the pool to ``n_bytes`` and optionally change the fast-path size."""
        if n_bytes > self.size:
            self._reallocate(n_bytes)
        if fast_path_size is None or fast_path_size == self._fast.shape[0]:
            return
        blocks = dict(self._blocks)
        for block_id in range(self._fast.shape[0]):
            block = self._block(block_id)
            if block.is_valid:
                blocks[block_id] = block
        self._fast = np.full((max(fast_path_size, 0), 2), -1, dtype=np.int64)
        self._blocks = {}
        for block_id, block in blocks.items():
            self._set_block(block_id, block)
