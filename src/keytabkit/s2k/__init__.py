"""
keytabkit String-to-Key Module

Password-based AES key derivation (RFC 3962, RFC 8009).

Components:
- salt: Default salt construction per compatibility profile
- pbkdf2: Generic PBKDF2-HMAC core with wiped intermediates
- deriver: Per-etype dispatch and KeySet derivation
"""

from keytabkit.s2k.salt import normalize_salt_input, default_salt
from keytabkit.s2k.pbkdf2 import pbkdf2
from keytabkit.s2k.deriver import (
    S2KParams,
    S2K_PARAMS,
    s2k_params,
    derive_key,
    derive_key_set,
)

__all__ = [
    "normalize_salt_input",
    "default_salt",
    "pbkdf2",
    "S2KParams",
    "S2K_PARAMS",
    "s2k_params",
    "derive_key",
    "derive_key_set",
]
