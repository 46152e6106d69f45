"""
keytabkit Secret Buffers

Mutable, wipeable containers for password plaintext, salts and key
material. Python bytes objects are immutable and cannot be cleared, so
every secret this package owns lives in a bytearray wrapped by
SecretBuffer and is zeroed when the owning scope exits.

Usage:
    with SecretBuffer.from_text(password) as pw:
        key = pbkdf2(pw.data, salt, 4096, 32, hashes.SHA1())
    # pw is zeroed here, even if pbkdf2 raised
"""

from __future__ import annotations

from typing import Any, Optional, Union

import attrs


BytesLike = Union[bytes, bytearray, memoryview]


def wipe(buffer: Union[bytearray, memoryview]) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    buffer[:] = bytes(len(buffer))


def mask_key(key: bytes, preview_bytes: int = 4) -> str:
    """
    Render a key as a short hex preview safe for display.

    Example:
        mask_key(bytes(range(32))) -> "00010203...(32 bytes)"
    """
    return f"{bytes(key[:preview_bytes]).hex()}...({len(key)} bytes)"


@attrs.define(eq=False, repr=False)
class SecretBuffer:
    """
    Bytearray holder that zeroes its contents on scope exit.

    INVARIANT: after wipe() (or leaving the with-block) every byte is 0
    """

    _data: bytearray = attrs.field(converter=bytearray)
    _wiped: bool = False

    @classmethod
    def from_text(cls, text: str, encoding: str = "utf-8") -> SecretBuffer:
        """Encode text into a new secret buffer."""
        return cls(text.encode(encoding))

    @classmethod
    def allocate(cls, size: int) -> SecretBuffer:
        """Create a zero-filled buffer of the given size."""
        return cls(bytearray(size))

    @property
    def data(self) -> bytearray:
        """The live, mutable buffer."""
        return self._data

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Zero the buffer. Safe to call more than once."""
        wipe(self._data)
        self._wiped = True

    def __len__(self) -> int:
        return len(self._data)

    def __enter__(self) -> SecretBuffer:
        return self

    def __exit__(self, exc_type: Optional[type], exc: Optional[BaseException], tb: Any) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return f"SecretBuffer(<{len(self._data)} bytes>)"
