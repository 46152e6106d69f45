"""
keytabkit Core Module

Provides foundational types and abstractions used by the policy resolver,
the string-to-key deriver and the keytab codec.

Components:
- types: Core type definitions (PrincipalDescriptor, KeySet, KeytabEntry, ...)
- secrets: Wipeable secret buffers
- config: Generator configuration
- exceptions: Custom exception types
"""

from keytabkit.core.types import (
    EtypeCategory,
    PathKind,
    SaltProfile,
    NameType,
    EncryptionTypeDescriptor,
    PrincipalDescriptor,
    KeySet,
    KeytabEntry,
)
from keytabkit.core.secrets import SecretBuffer, mask_key, wipe
from keytabkit.core.config import GeneratorConfig
from keytabkit.core.exceptions import (
    KeytabKitError,
    CryptoError,
    UnsupportedEncryptionType,
    InvalidIterationCount,
    PolicyError,
    PolicyConfigurationError,
    EtypeUnsupportedForPath,
    NoEncryptionTypesSelected,
    IterationCountTooLow,
    KeytabFormatError,
    MalformedKeytab,
    KeyLengthMismatch,
    PrincipalEncodingError,
    DestinationExists,
)

__all__ = [
    # Types
    "EtypeCategory",
    "PathKind",
    "SaltProfile",
    "NameType",
    "EncryptionTypeDescriptor",
    "PrincipalDescriptor",
    "KeySet",
    "KeytabEntry",
    # Secrets
    "SecretBuffer",
    "mask_key",
    "wipe",
    # Config
    "GeneratorConfig",
    # Exceptions
    "KeytabKitError",
    "CryptoError",
    "UnsupportedEncryptionType",
    "InvalidIterationCount",
    "PolicyError",
    "PolicyConfigurationError",
    "EtypeUnsupportedForPath",
    "NoEncryptionTypesSelected",
    "IterationCountTooLow",
    "KeytabFormatError",
    "MalformedKeytab",
    "KeyLengthMismatch",
    "PrincipalEncodingError",
    "DestinationExists",
]
