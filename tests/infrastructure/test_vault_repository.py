"""
VaultRepository tests with a stand-in SecretClient.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from azure.core.exceptions import ResourceNotFoundError

from infrastructure.vault import VaultAccessError, VaultRepository


class _SecretClient:

    def __init__(self, secrets):
        self.secrets = secrets

    def get_secret(self, name):
        if name not in self.secrets:
            raise ResourceNotFoundError(f"Secret {name} not found")
        return self.secrets[name]


def _secret(value, version="v1"):
    updated = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return SimpleNamespace(value=value, properties=SimpleNamespace(version=version, updated_on=updated))


class TestVaultRepository:

    def test_secret_with_properties(self):
        client = _SecretClient({"msauth-json": _secret('{"cookies": []}', version="abc")})
        repo = VaultRepository("https://bridge-kv.vault.azure.net/", client=client)

        result = repo.get_secret_with_properties("msauth-json")

        assert result == {
            'value': '{"cookies": []}',
            'version': "abc",
            'updated_on': "2026-01-01T00:00:00+00:00",
        }
        assert repo.get_secret("msauth-json") == '{"cookies": []}'

    def test_missing_secret(self):
        repo = VaultRepository("https://bridge-kv.vault.azure.net/", client=_SecretClient({}))
        with pytest.raises(VaultAccessError, match="msauth-json"):
            repo.get_secret("msauth-json")

    def test_empty_secret(self):
        client = _SecretClient({"msauth-json": _secret("")})
        repo = VaultRepository("https://bridge-kv.vault.azure.net/", client=client)
        with pytest.raises(VaultAccessError, match="empty"):
            repo.get_secret("msauth-json")
