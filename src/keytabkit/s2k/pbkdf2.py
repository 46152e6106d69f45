"""
keytabkit PBKDF2 Core

Generic PBKDF2 (RFC 2898 section 5.2) over a cryptography HMAC
primitive. The HMAC itself comes from the cryptography library; only
the block/iteration structure lives here, so that every intermediate
buffer is owned by this module and can be zeroed.

    T_i = U_1 ^ U_2 ^ ... ^ U_c
    U_1 = PRF(P, S || INT_BE32(i))
    U_j = PRF(P, U_{j-1})
    DK  = T_1 || T_2 || ... truncated to dkLen

Security:
- Accumulator, per-iteration digest, block index and message buffer are
  SecretBuffers wiped on every exit path
- The keyed HMAC state is created once and copied per iteration
"""

from __future__ import annotations

import struct
from typing import Union

from cryptography.hazmat.primitives import hashes, hmac

from keytabkit.core.exceptions import InvalidIterationCount
from keytabkit.core.secrets import SecretBuffer


BytesLike = Union[bytes, bytearray, memoryview]


def pbkdf2(
    password: BytesLike,
    salt: BytesLike,
    iterations: int,
    length: int,
    algorithm: hashes.HashAlgorithm,
) -> bytes:
    """
    Derive key bytes with PBKDF2-HMAC.

    Args:
        password: Password bytes (HMAC key)
        salt: Salt bytes
        iterations: Iteration count c (>= 1)
        length: Derived key length in bytes (>= 1)
        algorithm: HMAC hash, e.g. hashes.SHA1(), hashes.SHA256(), hashes.SHA384()

    Returns:
        Derived key of exactly `length` bytes

    Raises:
        InvalidIterationCount: If iterations < 1
        ValueError: If length < 1
    """
    if iterations < 1:
        raise InvalidIterationCount(iterations)
    if length < 1:
        raise ValueError(f"Derived key length must be >= 1, got {length}")

    digest_size = algorithm.digest_size
    block_count = -(-length // digest_size)
    salt_len = len(salt)

    prf = hmac.HMAC(password, algorithm)

    with SecretBuffer.allocate(block_count * digest_size) as output, \
            SecretBuffer.allocate(digest_size) as accumulator, \
            SecretBuffer.allocate(digest_size) as u, \
            SecretBuffer.allocate(4) as index, \
            SecretBuffer.allocate(salt_len + 4) as message:
        message.data[:salt_len] = salt

        for block in range(1, block_count + 1):
            struct.pack_into(">I", index.data, 0, block)
            message.data[salt_len:] = index.data

            h = prf.copy()
            h.update(message.data)
            u.data[:] = h.finalize()
            accumulator.data[:] = u.data

            for _ in range(iterations - 1):
                h = prf.copy()
                h.update(u.data)
                u.data[:] = h.finalize()
                acc = accumulator.data
                for k, value in enumerate(u.data):
                    acc[k] ^= value

            start = (block - 1) * digest_size
            output.data[start:start + digest_size] = accumulator.data

        return bytes(memoryview(output.data)[:length])
