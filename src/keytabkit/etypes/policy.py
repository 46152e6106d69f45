"""
keytabkit Encryption Type Policy

Composes and resolves which encryption types a keytab may contain.

Policy rules:
1. Safe defaults: AES-SHA1 (17, 18) unless the caller asks otherwise
2. RC4 (23) only on explicit opt-in
3. Dead ciphers always excluded unless explicitly allowed
4. Password-derived keytabs are AES only (17-20), with no override

Resolution issues (unknown tokens, requested-but-unavailable etypes)
are soft: they are reported alongside a successful result. An empty
selection and path violations are hard failures.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import attrs
import structlog
from attrs import field, validators
from returns.result import Failure, Result, Success

from keytabkit.core.exceptions import (
    EtypeUnsupportedForPath,
    NoEncryptionTypesSelected,
    PolicyConfigurationError,
)
from keytabkit.core.types import PathKind
from keytabkit.etypes.registry import (
    DEAD_IDS,
    MODERN_IDS,
    RC4_HMAC,
    SAFE_DEFAULT_IDS,
    EtypeToken,
    ids_from_tokens,
)

logger = structlog.get_logger()


# =============================================================================
# POLICY TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class PolicyIntent:
    """
    Validated caller intent for one keytab operation.

    Build with compose_policy(); instances are immutable.

    Attributes:
        path_kind: Password derivation or replicated keys
        include_ids: Requested etype ids in request order (empty = all available)
        exclude_ids: Etype ids never selected
        unknown_include: Include tokens that are not etypes
        unknown_exclude: Exclude tokens that are not etypes
        aes_only: Include list was forced to the safe AES set
        include_legacy_rc4: RC4 was opted in
        allow_dead_ciphers: Dead ciphers were not auto-excluded
    """

    path_kind: PathKind = field(validator=validators.instance_of(PathKind))
    include_ids: Tuple[int, ...] = field(converter=tuple, factory=tuple)
    exclude_ids: Tuple[int, ...] = field(converter=tuple, factory=tuple)
    unknown_include: Tuple[EtypeToken, ...] = field(converter=tuple, factory=tuple)
    unknown_exclude: Tuple[EtypeToken, ...] = field(converter=tuple, factory=tuple)
    aes_only: bool = False
    include_legacy_rc4: bool = False
    allow_dead_ciphers: bool = False


@attrs.define(frozen=True, slots=True)
class SelectionResult:
    """
    Outcome of resolving a policy against the available etypes.

    INVARIANT: selected is sorted, unique, non-empty and a subset of available
    """

    selected: Tuple[int, ...]
    missing: Tuple[int, ...] = ()
    unknown_include: Tuple[EtypeToken, ...] = ()
    unknown_exclude: Tuple[EtypeToken, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return bool(self.missing or self.unknown_include or self.unknown_exclude)


# =============================================================================
# COMPOSITION
# =============================================================================


def compose_policy(
    path_kind: PathKind,
    include_tokens: Optional[Iterable[EtypeToken]] = None,
    exclude_tokens: Optional[Iterable[EtypeToken]] = None,
    aes_only: bool = False,
    include_legacy_rc4: bool = False,
    allow_dead_ciphers: bool = False,
) -> Result[PolicyIntent, PolicyConfigurationError]:
    """
    Build a PolicyIntent from caller intent.

    Rules, applied in order:
    - aes_only with include_legacy_rc4 or allow_dead_ciphers is rejected
    - aes_only forces the include list to the safe AES set
    - no explicit include list, or none of its tokens resolving, means
      the safe AES set
    - include_legacy_rc4 appends RC4 (23) if not already included
    - dead ciphers are appended to the excludes unless allowed

    Args:
        path_kind: Where the keys come from
        include_tokens: Etype ids or names to include (None = defaults)
        exclude_tokens: Etype ids or names to exclude
        aes_only: Restrict to AES-SHA1 (17, 18)
        include_legacy_rc4: Opt in to RC4-HMAC
        allow_dead_ciphers: Do not auto-exclude dead ciphers

    Returns:
        Success(PolicyIntent) or Failure(PolicyConfigurationError)
    """
    if aes_only and include_legacy_rc4:
        return Failure(PolicyConfigurationError("aes_only cannot be combined with include_legacy_rc4"))
    if aes_only and allow_dead_ciphers:
        return Failure(PolicyConfigurationError("aes_only cannot be combined with allow_dead_ciphers"))

    include_list = list(include_tokens) if include_tokens is not None else []
    include_ids, unknown_include = ids_from_tokens(include_list)
    exclude_ids, unknown_exclude = ids_from_tokens(exclude_tokens or ())

    # an include list of only unknown tokens falls back to the defaults
    explicit_include = bool(include_ids)

    if aes_only or not explicit_include:
        include_ids = tuple(sorted(SAFE_DEFAULT_IDS))

    if include_legacy_rc4 and RC4_HMAC not in include_ids:
        include_ids = include_ids + (RC4_HMAC,)

    if not allow_dead_ciphers:
        exclude_ids = exclude_ids + tuple(i for i in sorted(DEAD_IDS) if i not in exclude_ids)

    policy = PolicyIntent(
        path_kind=path_kind,
        include_ids=include_ids,
        exclude_ids=exclude_ids,
        unknown_include=unknown_include,
        unknown_exclude=unknown_exclude,
        aes_only=aes_only,
        include_legacy_rc4=include_legacy_rc4,
        allow_dead_ciphers=allow_dead_ciphers,
    )

    logger.debug(
        "policy_composed",
        path_kind=path_kind.name,
        include=list(policy.include_ids),
        exclude=list(policy.exclude_ids),
        unknown_include=len(unknown_include),
        unknown_exclude=len(unknown_exclude),
    )

    return Success(policy)


# =============================================================================
# RESOLUTION
# =============================================================================


def resolve_selection(available: Iterable[int], policy: PolicyIntent) -> SelectionResult:
    """
    Resolve a policy against the etypes actually available.

    selected = (include & available) if include else available, minus
    exclude; sorted and unique.

    Args:
        available: Etype ids that keys exist for (or can be derived)
        policy: Composed policy

    Returns:
        SelectionResult with warnings for missing ids and unknown tokens

    Raises:
        NoEncryptionTypesSelected: If nothing remains after resolution
    """
    available_set = frozenset(available)
    excluded = frozenset(policy.exclude_ids)

    if policy.include_ids:
        candidates = frozenset(policy.include_ids) & available_set
    else:
        candidates = available_set

    selected = tuple(sorted(candidates - excluded))
    missing = tuple(i for i in policy.include_ids if i not in available_set)

    if missing:
        logger.warning("etypes_missing", missing=list(missing), available=sorted(available_set))
    if policy.unknown_include or policy.unknown_exclude:
        logger.warning(
            "etype_tokens_unknown",
            unknown_include=[str(t) for t in policy.unknown_include],
            unknown_exclude=[str(t) for t in policy.unknown_exclude],
        )

    if not selected:
        raise NoEncryptionTypesSelected(
            f"No encryption types selected (available: {sorted(available_set)}, "
            f"include: {list(policy.include_ids)}, exclude: {sorted(excluded)})"
        )

    logger.debug("policy_resolved", selected=list(selected))

    return SelectionResult(
        selected=selected,
        missing=missing,
        unknown_include=policy.unknown_include,
        unknown_exclude=policy.unknown_exclude,
    )


def validate_password_path_compatibility(policy: PolicyIntent) -> None:
    """
    Enforce the AES-only guardrail of the password derivation path.

    No-op for the replication path.

    Raises:
        EtypeUnsupportedForPath: If any requested id is outside 17-20, or
            RC4 / dead ciphers were opted in
    """
    if policy.path_kind is not PathKind.PASSWORD:
        return

    rejected = [i for i in policy.include_ids if i not in MODERN_IDS]
    if rejected:
        raise EtypeUnsupportedForPath(rejected)
    if policy.include_legacy_rc4:
        raise EtypeUnsupportedForPath(
            [RC4_HMAC], message="RC4 cannot be derived on the password path"
        )
    if policy.allow_dead_ciphers:
        raise EtypeUnsupportedForPath(
            message="Dead ciphers cannot be derived on the password path"
        )
