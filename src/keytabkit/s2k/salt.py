"""
keytabkit String-to-Key Salts

Default salt construction per compatibility profile.

The Kerberos default salt is the realm followed by every name component
with no separators: user@EXAMPLE.COM -> "EXAMPLE.COMuser".
"""

from __future__ import annotations

import attrs

from keytabkit.core.types import NameType, PrincipalDescriptor, SaltProfile


_SERVICE_NAME_TYPES = frozenset(
    {int(NameType.SRV_INST), int(NameType.SRV_HST), int(NameType.SRV_XHST)}
)


def normalize_salt_input(profile: SaltProfile, principal: PrincipalDescriptor) -> PrincipalDescriptor:
    """
    Apply a profile's case conventions to a principal before salting.

    WINDOWS: realm is uppercased; for service/host name types the first
    two components (service, host) are lowercased. MIT and HEIMDAL use
    the principal exactly as given.
    """
    if profile is not SaltProfile.WINDOWS:
        return principal

    components = principal.components
    if principal.name_type in _SERVICE_NAME_TYPES:
        components = tuple(c.lower() for c in components[:2]) + components[2:]

    return attrs.evolve(principal, realm=principal.realm.upper(), components=components)


def default_salt(profile: SaltProfile, principal: PrincipalDescriptor) -> bytes:
    """UTF-8 of realm + concatenated components of the normalized principal."""
    normalized = normalize_salt_input(profile, principal)
    return (normalized.realm + "".join(normalized.components)).encode("utf-8")
