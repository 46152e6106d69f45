"""
keytabkit AES String-to-Key Deriver

Turns a password and salt into raw key bytes for the AES encryption
types, using the PBKDF2 core with the per-etype parameters of
RFC 3962 (AES-SHA1) and RFC 8009 (AES-SHA2).

The output is the PBKDF2 stage of the string-to-key function: the key
bytes stored in keytabs produced by this tool family.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Type, Union

import attrs
import structlog
from cryptography.hazmat.primitives import hashes

from keytabkit.core.exceptions import UnsupportedEncryptionType
from keytabkit.core.secrets import SecretBuffer
from keytabkit.core.types import KeySet
from keytabkit.etypes.registry import (
    AES128_CTS_HMAC_SHA1_96,
    AES128_CTS_HMAC_SHA256_128,
    AES256_CTS_HMAC_SHA1_96,
    AES256_CTS_HMAC_SHA384_192,
)
from keytabkit.s2k.pbkdf2 import pbkdf2

logger = structlog.get_logger()

Secret = Union[str, bytes, bytearray]


# =============================================================================
# PARAMETERS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class S2KParams:
    """
    String-to-key parameters of one encryption type.

    Attributes:
        key_length: Derived key size in bytes
        hash_algorithm: HMAC hash class for the PBKDF2 PRF
        default_iterations: Iteration count when the caller gives none
    """

    key_length: int
    hash_algorithm: Type[hashes.HashAlgorithm]
    default_iterations: int


S2K_PARAMS: Dict[int, S2KParams] = {
    AES128_CTS_HMAC_SHA1_96: S2KParams(16, hashes.SHA1, 4096),
    AES256_CTS_HMAC_SHA1_96: S2KParams(32, hashes.SHA1, 4096),
    AES128_CTS_HMAC_SHA256_128: S2KParams(16, hashes.SHA256, 32768),
    AES256_CTS_HMAC_SHA384_192: S2KParams(32, hashes.SHA384, 32768),
}


def s2k_params(etype_id: int) -> S2KParams:
    """
    Look up string-to-key parameters.

    Raises:
        UnsupportedEncryptionType: If no parameters are defined for etype_id
    """
    params = S2K_PARAMS.get(etype_id)
    if params is None:
        raise UnsupportedEncryptionType(etype_id)
    return params


def _secret_buffer(value: Secret) -> SecretBuffer:
    if isinstance(value, str):
        return SecretBuffer.from_text(value)
    return SecretBuffer(value)


# =============================================================================
# DERIVATION
# =============================================================================


def derive_key(
    etype_id: int,
    password: Secret,
    salt: Secret,
    iterations: Optional[int] = None,
) -> bytes:
    """
    Derive key bytes for an AES encryption type from a password.

    Text passwords and salts are UTF-8 encoded. The function works on
    private copies of both and wipes them on every exit path.

    Args:
        etype_id: 17, 18, 19 or 20
        password: Password plaintext
        salt: Salt (see keytabkit.s2k.salt.default_salt)
        iterations: PBKDF2 iteration count (None = etype default)

    Returns:
        Key bytes of the etype's key length

    Raises:
        UnsupportedEncryptionType: If etype_id is not an AES etype
        InvalidIterationCount: If iterations < 1
    """
    with _secret_buffer(password) as pw, _secret_buffer(salt) as salt_buf:
        params = s2k_params(etype_id)
        count = params.default_iterations if iterations is None else iterations

        key = pbkdf2(pw.data, salt_buf.data, count, params.key_length, params.hash_algorithm())

        logger.debug(
            "key_derived",
            etype=etype_id,
            iterations=count,
            key_length=len(key),
        )
        return key


def derive_key_set(
    kvno: int,
    password: Secret,
    salt: Secret,
    etype_ids: Iterable[int],
    iterations: Optional[Dict[int, int]] = None,
) -> KeySet:
    """
    Derive one key per etype into a KeySet.

    Args:
        kvno: Key version number of the set
        password: Password plaintext
        salt: Salt shared by every etype
        etype_ids: AES etypes to derive
        iterations: Per-etype iteration overrides

    Returns:
        KeySet holding one key per requested etype
    """
    overrides = iterations or {}
    with _secret_buffer(password) as pw:
        keys = {
            etype_id: derive_key(etype_id, pw.data, salt, overrides.get(etype_id))
            for etype_id in sorted(set(etype_ids))
        }
    return KeySet(kvno=kvno, keys=keys)
