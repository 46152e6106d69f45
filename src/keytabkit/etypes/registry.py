"""
keytabkit Encryption Type Registry

Static, exhaustive id <-> name table of Kerberos encryption types with
their safety classification.

Values match the IANA "Kerberos Encryption Type Numbers" registry
(RFC 3961, RFC 3962, RFC 4757, RFC 6803, RFC 8009).

Every registered etype carries an explicit EtypeCategory; adding an
entry without one fails at construction, and the set consistency check
at the bottom of this module fails at import time.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union

from keytabkit.core.types import EncryptionTypeDescriptor, EtypeCategory


EtypeToken = Union[int, str]

AES128_CTS_HMAC_SHA1_96 = 17
AES256_CTS_HMAC_SHA1_96 = 18
AES128_CTS_HMAC_SHA256_128 = 19
AES256_CTS_HMAC_SHA384_192 = 20
RC4_HMAC = 23
UNKNOWN_ETYPE = 511

MAX_ETYPE_ID = 0xFFFF  # Keytab entries store the etype as uint16


_SAFE = EtypeCategory.SAFE
_LEGACY = EtypeCategory.LEGACY
_DEAD = EtypeCategory.DEAD


# =============================================================================
# CLASSIFICATION TABLE
# =============================================================================

_DESCRIPTORS: Tuple[EncryptionTypeDescriptor, ...] = (
    # CMS / PKINIT algorithm identifiers, never valid as keytab keys
    EncryptionTypeDescriptor(9, "dsaWithSHA1-CmsOID", _DEAD),
    EncryptionTypeDescriptor(10, "md5WithRSAEncryption-CmsOID", _DEAD),
    EncryptionTypeDescriptor(11, "sha1WithRSAEncryption-CmsOID", _DEAD),
    EncryptionTypeDescriptor(12, "rc2CBC-EnvOID", _DEAD),
    EncryptionTypeDescriptor(13, "rsaEncryption-EnvOID", _DEAD),
    EncryptionTypeDescriptor(14, "rsaES-OAEP-ENV-OID", _DEAD),
    EncryptionTypeDescriptor(15, "des-ede3-cbc-Env-OID", _DEAD),
    EncryptionTypeDescriptor(16, "des3-cbc-sha1", _DEAD, 24),
    # RFC 3962
    EncryptionTypeDescriptor(17, "aes128-cts-hmac-sha1-96", _SAFE, 16),
    EncryptionTypeDescriptor(18, "aes256-cts-hmac-sha1-96", _SAFE, 32),
    # RFC 8009
    EncryptionTypeDescriptor(19, "aes128-cts-hmac-sha256-128", _SAFE, 16),
    EncryptionTypeDescriptor(20, "aes256-cts-hmac-sha384-192", _SAFE, 32),
    # RFC 4757
    EncryptionTypeDescriptor(23, "arcfour-hmac", _LEGACY, 16),
    EncryptionTypeDescriptor(24, "arcfour-hmac-exp", _DEAD, 16),
    # RFC 6803
    EncryptionTypeDescriptor(25, "camellia128-cts-cmac", _SAFE, 16),
    EncryptionTypeDescriptor(26, "camellia256-cts-cmac", _SAFE, 32),
    # Sentinel reported by Active Directory for unrecognised key types
    EncryptionTypeDescriptor(511, "unknown", _DEAD),
)

REGISTRY: Dict[int, EncryptionTypeDescriptor] = {d.id: d for d in _DESCRIPTORS}

# Additional spellings accepted by id_from_token, normalized form -> id
_ALIASES: Dict[str, int] = {
    "aes128": 17,
    "aes128-sha1": 17,
    "aes256": 18,
    "aes256-sha1": 18,
    "aes128-sha2": 19,
    "aes128-sha256": 19,
    "aes256-sha2": 20,
    "aes256-sha384": 20,
    "rc4": 23,
    "rc4-hmac": 23,
    "arcfour-hmac-md5": 23,
    "rc4-hmac-exp": 24,
    "arcfour-hmac-md5-exp": 24,
    "des3-cbc-sha1-kd": 16,
    "des3-hmac-sha1": 16,
    "camellia128": 25,
    "camellia256": 26,
}


def _normalize_name(name: str) -> str:
    return name.strip().lower().replace("_", "-")


_NAME_INDEX: Dict[str, int] = {_normalize_name(d.name): d.id for d in _DESCRIPTORS}
_NAME_INDEX.update(_ALIASES)


def _ids_in(category: EtypeCategory) -> FrozenSet[int]:
    return frozenset(d.id for d in _DESCRIPTORS if d.category is category)


# =============================================================================
# ETYPE SETS
# =============================================================================

SAFE_DEFAULT_IDS: FrozenSet[int] = frozenset({AES128_CTS_HMAC_SHA1_96, AES256_CTS_HMAC_SHA1_96})
MODERN_IDS: FrozenSet[int] = frozenset(
    {
        AES128_CTS_HMAC_SHA1_96,
        AES256_CTS_HMAC_SHA1_96,
        AES128_CTS_HMAC_SHA256_128,
        AES256_CTS_HMAC_SHA384_192,
    }
)
LEGACY_IDS: FrozenSet[int] = _ids_in(_LEGACY)
DEAD_IDS: FrozenSet[int] = _ids_in(_DEAD)


def _verify_classification() -> None:
    """Reject an inconsistent classification table at import time."""
    if len(REGISTRY) != len(_DESCRIPTORS):
        raise ValueError("Duplicate etype id in registry")
    if not MODERN_IDS <= _ids_in(_SAFE):
        raise ValueError("Modern etypes must be classified SAFE")
    if not SAFE_DEFAULT_IDS <= MODERN_IDS:
        raise ValueError("Safe default etypes must be modern")
    if LEGACY_IDS != frozenset({RC4_HMAC}):
        raise ValueError("RC4-HMAC must be the only legacy etype")
    unregistered = sorted(set(_ALIASES.values()) - set(REGISTRY))
    if unregistered:
        raise ValueError(f"Aliases for unregistered etypes: {unregistered}")


_verify_classification()


# =============================================================================
# LOOKUPS
# =============================================================================


def id_from_token(token: EtypeToken) -> Optional[int]:
    """
    Normalize an etype token to an integer id.

    Accepts an int, a numeric string ("18") or a registered name or alias
    ("aes256-cts-hmac-sha1-96", "AES256_CTS_HMAC_SHA1_96", "aes256").
    Numeric ids need not be registered.

    Returns:
        The etype id, or None if the token is not recognised
    """
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token if 0 <= token <= MAX_ETYPE_ID else None
    if not isinstance(token, str):
        return None

    text = token.strip()
    if not text:
        return None
    if text.isascii() and text.isdigit():
        value = int(text)
        return value if value <= MAX_ETYPE_ID else None
    return _NAME_INDEX.get(_normalize_name(text))


def name_from_id(etype_id: int) -> str:
    """Registry name for an etype id, or "ETYPE_<id>" if unregistered."""
    descriptor = REGISTRY.get(etype_id)
    if descriptor is None:
        return f"ETYPE_{etype_id}"
    return descriptor.name


def descriptor_for(etype_id: int) -> Optional[EncryptionTypeDescriptor]:
    """Registry entry for an etype id, if registered."""
    return REGISTRY.get(etype_id)


def category_of(etype_id: int) -> Optional[EtypeCategory]:
    """Safety classification of an etype id, if registered."""
    descriptor = REGISTRY.get(etype_id)
    return descriptor.category if descriptor is not None else None


def key_length(etype_id: int) -> Optional[int]:
    """Raw key size in bytes for an etype id, if defined."""
    descriptor = REGISTRY.get(etype_id)
    return descriptor.key_length if descriptor is not None else None


def ids_from_tokens(tokens: Iterable[EtypeToken]) -> Tuple[Tuple[int, ...], Tuple[EtypeToken, ...]]:
    """
    Split tokens into recognised ids and unrecognised raw tokens.

    Ids keep first-seen order without duplicates.

    Returns:
        Tuple of (ids, unknown tokens)
    """
    ids = []
    unknown = []
    for token in tokens:
        etype_id = id_from_token(token)
        if etype_id is None:
            unknown.append(token)
        elif etype_id not in ids:
            ids.append(etype_id)
    return tuple(ids), tuple(unknown)
