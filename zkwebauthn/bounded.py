"""Fixed-capacity byte containers used for variable-length circuit inputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import OversizedFieldError

ByteSource = Union[bytes, bytearray, memoryview, Iterable[int]]


@dataclass(frozen=True)
class BoundedVec:
    """Zero-padded storage of ``max_len`` bytes plus the logical length."""

    storage: Tuple[int, ...]
    len: int

    @property
    def max_len(self) -> int:
        return len(self.storage)

    def to_bytes(self) -> bytes:
        return bytes(self.storage[: self.len])

    def to_dict(self) -> Dict[str, object]:
        return {"storage": list(self.storage), "len": self.len}


def as_bytes(data: ByteSource) -> bytes:
    if isinstance(data, memoryview):
        return data.tobytes()
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return bytes(list(data))


def to_bounded_vec(name: str, data: Optional[ByteSource], max_len: int) -> BoundedVec:
    """Encode ``data`` into a :class:`BoundedVec` of capacity ``max_len``.

    ``None`` encodes as an empty vector. Data longer than ``max_len`` raises
    :class:`OversizedFieldError`; nothing is ever truncated.
    """

    raw = b"" if data is None else as_bytes(data)
    if len(raw) > max_len:
        raise OversizedFieldError(name, len(raw), max_len)
    storage: List[int] = list(raw)
    storage.extend([0] * (max_len - len(raw)))
    return BoundedVec(storage=tuple(storage), len=len(raw))


__all__ = ["BoundedVec", "as_bytes", "to_bounded_vec"]
