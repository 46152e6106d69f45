"""
keytabkit Encryption Types Module

Registry of Kerberos encryption types and the policy resolver deciding
which of them a keytab may contain.

Components:
- registry: Static id/name/category table and token normalization
- policy: Policy composition, resolution and path guardrails
"""

from keytabkit.etypes.registry import (
    REGISTRY,
    SAFE_DEFAULT_IDS,
    MODERN_IDS,
    LEGACY_IDS,
    DEAD_IDS,
    UNKNOWN_ETYPE,
    id_from_token,
    name_from_id,
    descriptor_for,
    category_of,
    key_length,
)
from keytabkit.etypes.policy import (
    PolicyIntent,
    SelectionResult,
    compose_policy,
    resolve_selection,
    validate_password_path_compatibility,
)

__all__ = [
    # Registry
    "REGISTRY",
    "SAFE_DEFAULT_IDS",
    "MODERN_IDS",
    "LEGACY_IDS",
    "DEAD_IDS",
    "UNKNOWN_ETYPE",
    "id_from_token",
    "name_from_id",
    "descriptor_for",
    "category_of",
    "key_length",
    # Policy
    "PolicyIntent",
    "SelectionResult",
    "compose_policy",
    "resolve_selection",
    "validate_password_path_compatibility",
]
