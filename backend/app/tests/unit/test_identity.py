############################################################
#
# requestbooth - Live Event Song Request Service
#
# test_identity.py: Unit tests for guest identity resolution
#
############################################################

"""Unit tests for fingerprint hashing and identity resolution."""

import uuid

import pytest
from starlette.requests import Request

from backend.app.core.identity import (
    ClientSuppliedIdentityProvider,
    Identity,
    fingerprint_hash,
    generate_user_uuid,
)


def _request(headers=None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


class TestFingerprintHash:
    """The hash must match the browser client bit for bit."""

    def test_empty(self):
        assert fingerprint_hash([""]) == "0"

    def test_single_char(self):
        assert fingerprint_hash(["a"]) == "61"

    def test_known_value(self):
        # 31-multiplier string hash of "hello" is 99162322
        assert fingerprint_hash(["hello"]) == format(99162322, "x")

    def test_negative_hash_uses_absolute_value(self):
        # hashes to the minimum 32-bit integer
        assert fingerprint_hash(["polygenelubricants"]) == "80000000"

    def test_components_joined_with_pipe(self):
        assert fingerprint_hash(["Mozilla/5.0", "en-US", "1920x1080"]) == fingerprint_hash(
            ["Mozilla/5.0|en-US|1920x1080"]
        )

    def test_non_string_components(self):
        assert fingerprint_hash(["en-US", -120]) == fingerprint_hash(["en-US|-120"])

    def test_astral_characters_hashed_as_utf16_units(self):
        # one code point, two UTF-16 code units
        high, low = 0xD83C, 0xDFB5
        expected = (high * 31 + low) & 0xFFFFFFFF
        assert fingerprint_hash(["\U0001F3B5"]) == format(expected, "x")


class TestClientSuppliedIdentityProvider:
    """Tests for resolving identity from body fields and headers."""

    def test_body_fields(self):
        provider = ClientSuppliedIdentityProvider()
        identity = provider.resolve(
            _request(), {"userUuid": "u1", "deviceFingerprint": "fp1"}
        )
        assert identity == Identity(user_uuid="u1", device_fingerprint="fp1")

    def test_headers_used_when_body_missing(self):
        provider = ClientSuppliedIdentityProvider()
        identity = provider.resolve(
            _request({"X-User-Uuid": "u2", "X-Device-Fingerprint": "fp2"}), {}
        )
        assert identity.user_uuid == "u2"
        assert identity.device_fingerprint == "fp2"

    def test_body_wins_over_headers(self):
        provider = ClientSuppliedIdentityProvider()
        identity = provider.resolve(_request({"X-User-Uuid": "header"}), {"userUuid": "body"})
        assert identity.user_uuid == "body"

    def test_blank_values_are_anonymous(self):
        provider = ClientSuppliedIdentityProvider()
        identity = provider.resolve(_request(), {"userUuid": "   "})
        assert identity.user_uuid is None
        assert identity.is_anonymous is True

    def test_long_values_truncated(self):
        provider = ClientSuppliedIdentityProvider()
        identity = provider.resolve(_request(), {"userUuid": "x" * 200})
        assert len(identity.user_uuid) == 64


def test_generated_uuid_is_v4():
    value = generate_user_uuid()
    assert uuid.UUID(value).version == 4
