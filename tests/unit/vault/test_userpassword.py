"""Tests for username/password extraction."""

import pytest

from warden import vault
from warden.vault.userpassword import extract


class TestExtract:
    """Tests for extract."""

    def test_flat_secret(self) -> None:
        data = {"username": "app", "password": "s3cret"}
        assert extract(data, "username", "password") == ("app", "s3cret")

    def test_custom_attributes(self) -> None:
        data = {"user": "app", "pass": "s3cret", "ttl": 3600}
        assert extract(data, "user", "pass") == ("app", "s3cret")

    def test_kv2_secret(self) -> None:
        """KV-v2 secrets nest the values under data."""
        data = {
            "data": {"username": "app", "password": "s3cret"},
            "metadata": {"version": 3},
        }
        assert extract(data, "username", "password") == ("app", "s3cret")

    def test_flat_secret_wins_over_kv2_shape(self) -> None:
        data = {"username": "flat", "password": "flat-pass", "data": {}, "metadata": {}}
        assert extract(data, "username", "password") == ("flat", "flat-pass")

    @pytest.mark.parametrize(
        "data",
        [
            {"username": "app"},
            {"password": "s3cret"},
            {"username": "", "password": "s3cret"},
            {"username": 42, "password": "s3cret"},
            {"data": {"username": "app"}, "metadata": {}},
        ],
    )
    def test_no_partial_results(self, data: dict) -> None:
        """Only complete pairs are returned."""
        assert extract(data, "username", "password") is None

    @pytest.mark.parametrize(
        "data",
        [
            {"data": {"username": "app", "password": "s3cret"}},
            {"data": {"username": "app", "password": "s3cret"}, "metadata": "v1"},
            {"data": "nope", "metadata": {}},
            {
                "data": {"username": "app", "password": "s3cret"},
                "metadata": {},
                "extra": True,
            },
        ],
    )
    def test_rejects_malformed_kv2(self, data: dict) -> None:
        """The KV-v2 envelope must be exactly data and metadata mappings."""
        assert extract(data, "username", "password") is None

    def test_empty(self) -> None:
        assert extract({}, "username", "password") is None

    def test_exported_from_package(self) -> None:
        data = {"username": "app", "password": "s3cret"}
        assert vault.userpassword.extract(data, "username", "password") == ("app", "s3cret")
