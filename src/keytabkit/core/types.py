"""
keytabkit Core Types

Fundamental type definitions shared by the policy resolver, the
string-to-key deriver and the keytab codec.

Design Principles:
- Immutable: All value types use frozen attrs
- Validated: Type constraints enforced at construction
- Secret-aware: Key material is excluded from repr
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum, auto
from typing import Any, Dict, Mapping, Optional, Tuple

import attrs
from attrs import field, validators

from keytabkit.core.secrets import mask_key


UINT32_MAX = 0xFFFFFFFF


# =============================================================================
# ENUMS
# =============================================================================


class EtypeCategory(Enum):
    """Safety classification of a Kerberos encryption type."""

    SAFE = auto()
    LEGACY = auto()  # Usable on explicit opt-in only
    DEAD = auto()  # Obsolete or broken, excluded unless overridden


class PathKind(Enum):
    """Where the keys of a keytab come from."""

    PASSWORD = auto()  # Derived locally from a password via string-to-key
    REPLICATION = auto()  # Supplied by a directory replication client


class SaltProfile(Enum):
    """Convention used to build the string-to-key salt from a principal."""

    MIT = auto()
    HEIMDAL = auto()
    WINDOWS = auto()


class NameType(IntEnum):
    """
    Kerberos principal name types.

    Values match RFC 4120 section 6.2 assigned numbers.
    """

    UNKNOWN = 0
    PRINCIPAL = 1
    SRV_INST = 2
    SRV_HST = 3
    SRV_XHST = 4
    UID = 5
    X500_PRINCIPAL = 6
    SMTP_NAME = 7
    ENTERPRISE = 10

    @property
    def is_service(self) -> bool:
        """Return True for service and host name types."""
        return self in (NameType.SRV_INST, NameType.SRV_HST, NameType.SRV_XHST)


# =============================================================================
# ENCRYPTION TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class EncryptionTypeDescriptor:
    """
    Registry entry for one encryption type.

    Attributes:
        id: IANA-assigned etype number
        name: Canonical MIT name (e.g. "aes256-cts-hmac-sha1-96")
        category: Safety classification
        key_length: Raw key size in bytes, None where no keys are produced
    """

    id: int = field(validator=validators.instance_of(int))
    name: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    category: EtypeCategory = field(validator=validators.instance_of(EtypeCategory))
    key_length: Optional[int] = None


# =============================================================================
# PRINCIPALS
# =============================================================================


def _to_tuple(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _check_components(instance: Any, attribute: Any, value: Tuple[str, ...]) -> None:
    if not value:
        raise ValueError("Principal must have at least one name component")
    for component in value:
        if not isinstance(component, str) or not component:
            raise ValueError(f"Invalid principal component: {component!r}")


def _escape(text: str, specials: str) -> str:
    out = []
    for ch in text:
        if ch == "\\" or ch in specials:
            out.append("\\")
        out.append(ch)
    return "".join(out)


@attrs.define(frozen=True, slots=True)
class PrincipalDescriptor:
    """
    Kerberos principal: ordered name components, realm and name type.

    Format: comp1/comp2@REALM (e.g. HTTP/web.example.com@EXAMPLE.COM)

    INVARIANT: components and realm are non-empty
    """

    components: Tuple[str, ...] = field(converter=_to_tuple, validator=_check_components)
    realm: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    name_type: int = field(
        default=int(NameType.PRINCIPAL),
        converter=int,
        validator=[validators.ge(0), validators.le(UINT32_MAX)],
    )

    @classmethod
    def parse(
        cls, principal_str: str, name_type: Optional[int] = None
    ) -> PrincipalDescriptor:
        """
        Parse a principal from its display form.

        Backslash escapes a literal "/", "@" or "\\" inside a component.
        When name_type is not given, multi-component names are treated
        as SRV_INST and single-component names as PRINCIPAL.

        Examples:
            "user@EXAMPLE.COM" -> (("user",), "EXAMPLE.COM")
            "HTTP/web.example.com@EXAMPLE.COM" -> (("HTTP", "web.example.com"), "EXAMPLE.COM")
        """
        components = []
        current = []
        realm = None
        escaped = False

        for ch in principal_str:
            if escaped:
                current.append(ch)
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "/" and realm is None:
                components.append("".join(current))
                current = []
            elif ch == "@" and realm is None:
                components.append("".join(current))
                current = []
                realm = ""
            else:
                current.append(ch)

        if escaped:
            raise ValueError(f"Trailing escape in principal: {principal_str}")
        if realm is None:
            raise ValueError(f"Invalid principal format: {principal_str}")
        realm = "".join(current)

        if name_type is None:
            name_type = NameType.SRV_INST if len(components) > 1 else NameType.PRINCIPAL

        return cls(components=tuple(components), realm=realm, name_type=name_type)

    @property
    def name(self) -> str:
        """Name components joined with "/" (no realm)."""
        return "/".join(_escape(c, "/@") for c in self.components)

    def __str__(self) -> str:
        return f"{self.name}@{_escape(self.realm, '@')}"


# =============================================================================
# KEYS
# =============================================================================


def _to_key_map(value: Mapping[int, Any]) -> Dict[int, bytes]:
    return {int(etype_id): bytes(key) for etype_id, key in value.items()}


@attrs.define(frozen=True, slots=True)
class KeySet:
    """
    Keys of one key version number generation.

    INVARIANT: kvno fits in 32 bits, one key per etype id
    """

    kvno: int = field(validator=[validators.instance_of(int), validators.ge(0), validators.le(UINT32_MAX)])
    keys: Dict[int, bytes] = field(converter=_to_key_map, repr=False, hash=False)

    @property
    def etype_ids(self) -> Tuple[int, ...]:
        """Etype ids present in this key set, ascending."""
        return tuple(sorted(self.keys))


@attrs.define(frozen=True, slots=True)
class KeytabEntry:
    """
    One decoded (or to-be-encoded) keytab record.

    When read with masking, key is empty and only key_preview and
    key_length describe the key.
    """

    principal: PrincipalDescriptor
    etype_id: int
    kvno: int
    timestamp: datetime
    key: bytes = field(default=b"", repr=False)
    key_length: int = field()
    masked: bool = False
    key_preview: str = ""

    @key_length.default
    def _default_key_length(self) -> int:
        return len(self.key)

    @property
    def etype_name(self) -> str:
        from keytabkit.etypes.registry import name_from_id

        return name_from_id(self.etype_id)

    @property
    def key_display(self) -> str:
        """Masked preview or full lowercase hex of the key."""
        if self.masked:
            return self.key_preview
        return self.key.hex()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON export and comparison tooling.

        A naive timestamp is taken as UTC, as the keytab encoder does.
        """
        timestamp = self.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return {
            "realm": self.principal.realm,
            "components": list(self.principal.components),
            "name_type": self.principal.name_type,
            "kvno": self.kvno,
            "etype_id": self.etype_id,
            "etype_name": self.etype_name,
            "key_length": self.key_length,
            "key": self.key_display,
            "masked": self.masked,
            "timestamp": timestamp.astimezone(timezone.utc).isoformat(),
        }

    def masked_copy(self) -> KeytabEntry:
        """Return this entry with the raw key replaced by a preview."""
        if self.masked:
            return self
        return attrs.evolve(
            self,
            key=b"",
            key_length=len(self.key),
            masked=True,
            key_preview=mask_key(self.key),
        )
