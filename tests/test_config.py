"""Unit tests for core/config.py and auth/keys.py -- startup validation of key material.

Covers:
- Settings: missing / short JWT_SIGN_KEY fails at construction
- Settings: lifetime, skew, and audience cross-field checks
- KeyMaterial: same checks when built directly; key hidden from repr
- KeyMaterial.load() maps settings fields one-to-one
"""

import pytest
from helpers import TEST_SECRET
from pydantic import ValidationError

from auth.errors import KeyMaterialError
from auth.keys import KeyMaterial
from core.config import Settings


def _settings(**overrides) -> Settings:
    values = {"jwt_sign_key": TEST_SECRET, "_env_file": None}
    values.update(overrides)
    return Settings(**values)


class TestSettings:
    def test_defaults(self):
        s = _settings()
        assert s.jwt_issuer
        assert s.jwt_expire_seconds == 7200
        assert s.jwt_clock_skew_seconds == 5
        assert s.jwt_validate_audience is False

    def test_missing_key_rejected(self):
        with pytest.raises(ValidationError, match="JWT_SIGN_KEY is required"):
            _settings(jwt_sign_key="")

    def test_short_key_rejected(self):
        with pytest.raises(ValidationError, match="at least 16 bytes"):
            _settings(jwt_sign_key="x" * 15)

    def test_sixteen_byte_key_accepted(self):
        assert _settings(jwt_sign_key="x" * 16).jwt_sign_key == "x" * 16

    def test_non_positive_window_rejected(self):
        with pytest.raises(ValidationError):
            _settings(jwt_expire_seconds=0)

    def test_negative_skew_rejected(self):
        with pytest.raises(ValidationError):
            _settings(jwt_clock_skew_seconds=-1)

    def test_audience_required_when_enabled(self):
        with pytest.raises(ValidationError):
            _settings(jwt_validate_audience=True)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_ISSUER", "EnvIssuer")
        monkeypatch.setenv("JWT_EXPIRE_SECONDS", "60")
        s = _settings()
        assert s.jwt_issuer == "EnvIssuer"
        assert s.jwt_expire_seconds == 60


class TestKeyMaterial:
    def test_load_from_settings(self):
        material = KeyMaterial.load(
            _settings(jwt_issuer="Iss", jwt_expire_seconds=60, jwt_validate_audience=True, jwt_audience="aud")
        )
        assert material.signing_key == TEST_SECRET.encode()
        assert material.issuer == "Iss"
        assert material.expire_seconds == 60
        assert material.validate_audience is True
        assert material.audience == "aud"

    def test_empty_audience_setting_becomes_none(self):
        assert KeyMaterial.load(_settings()).audience is None

    def test_missing_secret(self):
        with pytest.raises(KeyMaterialError):
            KeyMaterial.from_secret("", "Iss")

    def test_short_secret(self):
        with pytest.raises(KeyMaterialError):
            KeyMaterial.from_secret("fifteen-bytes!!", "Iss")

    def test_multibyte_secret_measured_in_bytes(self):
        # 8 characters, 16 UTF-8 bytes
        assert len(KeyMaterial.from_secret("éééééééé", "Iss").signing_key) == 16

    def test_empty_issuer(self):
        with pytest.raises(KeyMaterialError):
            KeyMaterial.from_secret(TEST_SECRET, "")

    def test_key_material_error_is_value_error(self):
        with pytest.raises(ValueError):
            KeyMaterial.from_secret("short", "Iss")

    def test_repr_hides_key(self):
        material = KeyMaterial.from_secret(TEST_SECRET, "Iss")
        assert TEST_SECRET not in repr(material)

    def test_frozen(self):
        material = KeyMaterial.from_secret(TEST_SECRET, "Iss")
        with pytest.raises(AttributeError):
            material.issuer = "Other"
