"""
Unit tests for keytabkit.s2k modules.

Tests salt construction, the PBKDF2 core against reference vectors and
reference implementations, and per-etype key derivation.
"""

import hashlib
import importlib

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from keytabkit.core.exceptions import InvalidIterationCount, UnsupportedEncryptionType
from keytabkit.core.secrets import SecretBuffer
from keytabkit.core.types import NameType, PrincipalDescriptor, SaltProfile
from keytabkit.s2k import deriver as deriver_module
from keytabkit.s2k.deriver import S2K_PARAMS, derive_key, derive_key_set, s2k_params
from keytabkit.s2k.pbkdf2 import pbkdf2
from keytabkit.s2k.salt import default_salt, normalize_salt_input

# The package re-exports the pbkdf2 function, shadowing the submodule attribute.
pbkdf2_module = importlib.import_module("keytabkit.s2k.pbkdf2")


def _reference(hash_name: str, password: bytes, salt: bytes, iterations: int, length: int) -> bytes:
    return hashlib.pbkdf2_hmac(hash_name, password, salt, iterations, length)


@pytest.fixture
def tracked_buffers(monkeypatch):
    """Record every SecretBuffer created by the s2k modules."""
    created = []

    class TrackingBuffer(SecretBuffer):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(pbkdf2_module, "SecretBuffer", TrackingBuffer)
    monkeypatch.setattr(deriver_module, "SecretBuffer", TrackingBuffer)
    return created


# =============================================================================
# SALTS
# =============================================================================


class TestSalt:
    """Tests for salt normalization and default salts."""

    def test_mit_user_salt(self, user_principal):
        assert default_salt(SaltProfile.MIT, user_principal) == b"EXAMPLE.COMuser"

    def test_mit_preserves_case(self):
        principal = PrincipalDescriptor(components=("HTTP", "Web.Example.com"), realm="example.com", name_type=NameType.SRV_INST)
        assert normalize_salt_input(SaltProfile.MIT, principal) is principal
        assert default_salt(SaltProfile.MIT, principal) == b"example.comHTTPWeb.Example.com"

    def test_heimdal_matches_mit(self, service_principal):
        assert default_salt(SaltProfile.HEIMDAL, service_principal) == default_salt(
            SaltProfile.MIT, service_principal
        )

    def test_windows_service_lowercased(self):
        principal = PrincipalDescriptor(
            components=("HTTP", "Web.Example.COM"), realm="example.com", name_type=NameType.SRV_INST
        )
        normalized = normalize_salt_input(SaltProfile.WINDOWS, principal)
        assert normalized.realm == "EXAMPLE.COM"
        assert normalized.components == ("http", "web.example.com")
        assert default_salt(SaltProfile.WINDOWS, principal) == b"EXAMPLE.COMhttpweb.example.com"

    def test_windows_host_type_lowercased(self):
        principal = PrincipalDescriptor(components=("HOST", "DB01"), realm="Example.com", name_type=NameType.SRV_HST)
        assert default_salt(SaltProfile.WINDOWS, principal) == b"EXAMPLE.COMhostdb01"

    def test_windows_only_first_two_components(self):
        principal = PrincipalDescriptor(
            components=("LDAP", "DC01.example.com", "EXAMPLE.COM"),
            realm="EXAMPLE.COM",
            name_type=NameType.SRV_INST,
        )
        normalized = normalize_salt_input(SaltProfile.WINDOWS, principal)
        assert normalized.components == ("ldap", "dc01.example.com", "EXAMPLE.COM")

    def test_windows_user_keeps_component_case(self):
        principal = PrincipalDescriptor(components=("User",), realm="example.com", name_type=NameType.PRINCIPAL)
        assert default_salt(SaltProfile.WINDOWS, principal) == b"EXAMPLE.COMUser"

    def test_salt_is_utf8(self):
        principal = PrincipalDescriptor(components=("jürgen",), realm="EXAMPLE.COM")
        assert default_salt(SaltProfile.MIT, principal) == "EXAMPLE.COMjürgen".encode("utf-8")


# =============================================================================
# PBKDF2 CORE
# =============================================================================


class TestPBKDF2:
    """Tests for the generic PBKDF2 core."""

    @pytest.mark.parametrize(
        "iterations, expected",
        [
            (1, "0c60c80f961f0e71f3a9b524af6012062fe037a6"),
            (2, "ea6c014dc72d6f8ccd1ed92ace1d41f0d8de8957"),
            (4096, "4b007901b765489abead49d926f721d065a429c1"),
        ],
    )
    def test_rfc6070_sha1_vectors(self, iterations, expected):
        """RFC 6070 PBKDF2-HMAC-SHA1 test vectors."""
        assert pbkdf2(b"password", b"salt", iterations, 20, hashes.SHA1()).hex() == expected

    def test_rfc6070_multi_block(self):
        """RFC 6070 vector spanning two SHA1 blocks."""
        result = pbkdf2(
            b"passwordPASSWORDpassword",
            b"saltSALTsaltSALTsaltSALTsaltSALTsalt",
            4096,
            25,
            hashes.SHA1(),
        )
        assert result.hex() == "3d2eec4fe41c849b80c8d83662c0e44a8b291a964cf2f07038"

    def test_rfc3962_vectors(self):
        """RFC 3962 appendix B PBKDF2 output, iteration count 1."""
        salt = b"ATHENA.MIT.EDUraeburn"
        assert pbkdf2(b"password", salt, 1, 16, hashes.SHA1()).hex() == "cdedb5281bb2f801565a1122b2563515"
        assert pbkdf2(b"password", salt, 1, 32, hashes.SHA1()).hex() == (
            "cdedb5281bb2f801565a1122b2563515" "0ad1f7a04bb9f3a333ecc0e2e1f70837"
        )

    @pytest.mark.parametrize(
        "algorithm, hash_name",
        [(hashes.SHA1(), "sha1"), (hashes.SHA256(), "sha256"), (hashes.SHA384(), "sha384")],
    )
    @pytest.mark.parametrize("length", [1, 16, 32, 48, 64, 100])
    def test_matches_hashlib(self, algorithm, hash_name, length):
        """Each HMAC variant matches hashlib.pbkdf2_hmac at any length."""
        expected = _reference(hash_name, b"secret", b"EXAMPLE.COMuser", 3, length)
        assert pbkdf2(b"secret", b"EXAMPLE.COMuser", 3, length, algorithm) == expected

    @pytest.mark.parametrize(
        "algorithm", [hashes.SHA1(), hashes.SHA256(), hashes.SHA384()]
    )
    def test_matches_cryptography(self, algorithm):
        """Each HMAC variant matches cryptography's PBKDF2HMAC."""
        kdf = PBKDF2HMAC(algorithm=type(algorithm)(), length=32, salt=b"NaCl", iterations=50)
        assert pbkdf2(b"password", b"NaCl", 50, 32, algorithm) == kdf.derive(b"password")

    def test_sha256_known_vector(self):
        result = pbkdf2(b"password", b"salt", 1, 32, hashes.SHA256())
        assert result.hex() == "120fb6cffcf8b32c43e7225256c4f837a86548c92ccc35480805987cb70be17b"

    def test_accepts_bytearray_inputs(self):
        expected = _reference("sha1", b"pw", b"salt", 2, 16)
        assert pbkdf2(bytearray(b"pw"), bytearray(b"salt"), 2, 16, hashes.SHA1()) == expected

    @pytest.mark.parametrize("iterations", [0, -1, -4096])
    def test_rejects_iterations_below_one(self, iterations):
        with pytest.raises(InvalidIterationCount):
            pbkdf2(b"pw", b"salt", iterations, 16, hashes.SHA1())

    def test_rejects_zero_length(self):
        with pytest.raises(ValueError):
            pbkdf2(b"pw", b"salt", 1, 0, hashes.SHA1())

    def test_intermediate_buffers_wiped(self, tracked_buffers):
        """Accumulator, digest, index, message and output are zeroed."""
        pbkdf2(b"pw", b"salt", 5, 40, hashes.SHA1())
        assert len(tracked_buffers) == 5
        for buf in tracked_buffers:
            assert buf.wiped
            assert not any(buf.data)


# =============================================================================
# KEY DERIVATION
# =============================================================================


class TestDeriveKey:
    """Tests for per-etype key derivation."""

    def test_scenario_aes256_reference(self):
        """etype 18, 4096 iterations: 32 bytes equal to PBKDF2-HMAC-SHA1."""
        key = derive_key(18, "P@ssw0rd!", b"EXAMPLE.COMuser", 4096)
        assert len(key) == 32
        assert key == _reference("sha1", b"P@ssw0rd!", b"EXAMPLE.COMuser", 4096, 32)

    def test_default_iterations_sha1(self):
        key = derive_key(17, "P@ssw0rd!", "EXAMPLE.COMuser")
        assert key == _reference("sha1", b"P@ssw0rd!", b"EXAMPLE.COMuser", 4096, 16)

    @pytest.mark.slow
    def test_default_iterations_sha2(self):
        """RFC 8009 etypes default to 32768 iterations."""
        key19 = derive_key(19, "P@ssw0rd!", b"EXAMPLE.COMuser")
        key20 = derive_key(20, "P@ssw0rd!", b"EXAMPLE.COMuser")
        assert key19 == _reference("sha256", b"P@ssw0rd!", b"EXAMPLE.COMuser", 32768, 16)
        assert key20 == _reference("sha384", b"P@ssw0rd!", b"EXAMPLE.COMuser", 32768, 32)

    @pytest.mark.parametrize("etype_id, length", [(17, 16), (18, 32), (19, 16), (20, 32)])
    def test_key_lengths(self, etype_id, length):
        assert len(derive_key(etype_id, "pw", b"salt", iterations=2)) == length

    def test_iteration_override_changes_key(self):
        assert derive_key(18, "pw", b"salt", 1) != derive_key(18, "pw", b"salt", 2)

    def test_text_and_bytes_inputs_agree(self):
        assert derive_key(17, "pässword", "REALMuser", 2) == derive_key(
            17, "pässword".encode("utf-8"), b"REALMuser", 2
        )

    @pytest.mark.parametrize("etype_id", [23, 16, 25, 99, 0])
    def test_unsupported_etype(self, etype_id):
        with pytest.raises(UnsupportedEncryptionType) as exc_info:
            derive_key(etype_id, "pw", b"salt")
        assert exc_info.value.etype_id == etype_id

    def test_invalid_iterations(self):
        with pytest.raises(InvalidIterationCount):
            derive_key(18, "pw", b"salt", 0)

    def test_caller_buffers_untouched(self):
        password = bytearray(b"pw")
        salt = bytearray(b"salt")
        derive_key(17, password, salt, 1)
        assert password == bytearray(b"pw")
        assert salt == bytearray(b"salt")

    def test_secrets_wiped_on_success(self, tracked_buffers):
        derive_key(17, "pw", b"salt", 1)
        assert tracked_buffers
        assert all(buf.wiped and not any(buf.data) for buf in tracked_buffers)

    def test_secrets_wiped_on_unsupported_etype(self, tracked_buffers):
        with pytest.raises(UnsupportedEncryptionType):
            derive_key(23, "pw", b"salt")
        assert len(tracked_buffers) == 2
        assert all(buf.wiped and not any(buf.data) for buf in tracked_buffers)

    def test_secrets_wiped_on_invalid_iterations(self, tracked_buffers):
        with pytest.raises(InvalidIterationCount):
            derive_key(18, "pw", b"salt", -1)
        assert all(buf.wiped and not any(buf.data) for buf in tracked_buffers)


class TestS2KParams:
    """Tests for the dispatch table."""

    def test_table(self):
        assert s2k_params(17).key_length == 16
        assert s2k_params(18).default_iterations == 4096
        assert s2k_params(19).hash_algorithm is hashes.SHA256
        assert s2k_params(20).hash_algorithm is hashes.SHA384
        assert s2k_params(20).default_iterations == 32768
        assert set(S2K_PARAMS) == {17, 18, 19, 20}

    def test_unknown(self):
        with pytest.raises(UnsupportedEncryptionType):
            s2k_params(23)


class TestDeriveKeySet:
    """Tests for derive_key_set."""

    def test_key_set(self):
        key_set = derive_key_set(5, "pw", b"salt", [18, 17, 18], iterations={17: 1, 18: 1})
        assert key_set.kvno == 5
        assert key_set.etype_ids == (17, 18)
        assert key_set.keys[17] == derive_key(17, "pw", b"salt", 1)
        assert key_set.keys[18] == derive_key(18, "pw", b"salt", 1)

    def test_unsupported_etype_in_set(self):
        with pytest.raises(UnsupportedEncryptionType):
            derive_key_set(1, "pw", b"salt", [17, 23], iterations={17: 1})
