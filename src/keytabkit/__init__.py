"""
keytabkit - Kerberos Keytab Generation and Validation

Generates, parses and validates MIT Kerberos keytab files (format 0x0502).

Components:
- etypes: Encryption type registry and safe-default policy resolver
- s2k: Password-based AES key derivation (RFC 3962, RFC 8009)
- keytab: Bit-exact keytab codec with atomic file writes
- generator: Orchestration of the above

Example Usage:
    from keytabkit import GeneratorConfig, KeytabGenerator, PrincipalDescriptor

    generator = KeytabGenerator(GeneratorConfig(overwrite=True))
    report = generator.generate_from_password(
        "user.keytab",
        [PrincipalDescriptor.parse("user@EXAMPLE.COM")],
        password="secret",
        kvno=2,
    )
    for entry in generator.inspect(report.path):
        print(entry["etype_name"], entry["kvno"], entry["key"])
"""

from keytabkit.core.types import (
    PathKind,
    SaltProfile,
    NameType,
    PrincipalDescriptor,
    KeySet,
    KeytabEntry,
)
from keytabkit.core.config import GeneratorConfig
from keytabkit.generator import KeytabGenerator, GenerationReport

__version__ = "0.1.0"

__all__ = [
    # Main API
    "KeytabGenerator",
    "GeneratorConfig",
    "GenerationReport",
    # Types
    "PathKind",
    "SaltProfile",
    "NameType",
    "PrincipalDescriptor",
    "KeySet",
    "KeytabEntry",
    # Metadata
    "__version__",
]
