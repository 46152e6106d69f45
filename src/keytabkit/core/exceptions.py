"""
keytabkit Exception Types

Custom exceptions for key derivation, policy and keytab format errors.
"""

from typing import Iterable, Optional


class KeytabKitError(Exception):
    """Base exception for all keytabkit errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class CryptoError(KeytabKitError):
    """
    Key derivation failed.

    This indicates the string-to-key parameters were rejected before
    or during derivation.
    """

    pass


class UnsupportedEncryptionType(CryptoError):
    """No string-to-key parameters are defined for the encryption type."""

    def __init__(self, etype_id: int, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Unsupported encryption type: {etype_id}"
        super().__init__(message, code=14)  # KDC_ERR_ETYPE_NOSUPP
        self.etype_id = etype_id


class InvalidIterationCount(CryptoError):
    """PBKDF2 iteration count is below 1."""

    def __init__(self, iterations: int) -> None:
        super().__init__(f"Iteration count must be >= 1, got {iterations}")
        self.iterations = iterations


class PolicyError(KeytabKitError):
    """
    Encryption-type policy error.

    Raised when a policy cannot be built, is illegal for the requested
    path, or resolves to nothing usable.
    """

    pass


class PolicyConfigurationError(PolicyError):
    """Mutually exclusive policy flags were combined."""

    pass


class EtypeUnsupportedForPath(PolicyError):
    """
    Encryption type requested on a path that cannot produce it.

    The password path derives AES keys only; there is no override.
    """

    def __init__(self, etype_ids: Iterable[int] = (), message: Optional[str] = None) -> None:
        self.etype_ids = tuple(sorted(etype_ids))
        if message is None:
            message = (
                "Password-derived keytabs support AES encryption types only "
                f"(17, 18, 19, 20); rejected: {list(self.etype_ids)}"
            )
        super().__init__(message)


class NoEncryptionTypesSelected(PolicyError):
    """Policy resolution left no encryption types to write."""

    def __init__(self, message: str = "No encryption types selected") -> None:
        super().__init__(message)


class IterationCountTooLow(PolicyError):
    """Iteration count is below the configured floor."""

    def __init__(self, iterations: int, minimum: int) -> None:
        super().__init__(
            f"Iteration count {iterations} is below the configured minimum {minimum}"
        )
        self.iterations = iterations
        self.minimum = minimum


class KeytabFormatError(KeytabKitError):
    """
    Keytab encoding or decoding error.

    This indicates data that cannot be represented in, or was not read
    from, a well-formed keytab.
    """

    pass


class MalformedKeytab(KeytabFormatError):
    """
    Keytab bytes could not be decoded.

    Always carries the byte offset at which decoding failed.
    """

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


class KeyLengthMismatch(KeytabFormatError):
    """Key byte length does not match the encryption type's key size."""

    def __init__(self, etype_id: int, expected: int, actual: int) -> None:
        super().__init__(
            f"Key for encryption type {etype_id} must be {expected} bytes, got {actual}"
        )
        self.etype_id = etype_id
        self.expected = expected
        self.actual = actual


class PrincipalEncodingError(KeytabFormatError):
    """Realm or name component cannot be stored in a keytab field."""

    pass


class DestinationExists(KeytabKitError):
    """Keytab destination already exists and overwrite is not permitted."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Destination already exists: {path}")
        self.path = path
