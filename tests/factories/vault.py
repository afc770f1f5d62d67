"""Test factories for the Vault domain.

FakeVault serves the Vault token and lease endpoints in-process through
httpx.MockTransport; Seeder adds tokens and credentials encrypted with a
scope key to an InMemoryVaultStore.
"""

import json
from collections.abc import Callable
from datetime import datetime, timedelta

import httpx

from warden.kms import Wrapper
from warden.vault.models import (
    Credential,
    CredentialStatus,
    Token,
    TokenStatus,
    utc_now,
)
from warden.vault.stores import InMemoryVaultStore

SCOPE_ID = "o_1234567890"
STORE_ID = "csvlt_1234567890"
LIBRARY_ID = "clvlt_1234567890"
VAULT_ADDR = "https://vault.test:8200"

RENEW_SELF = "/v1/auth/token/renew-self"
REVOKE_SELF = "/v1/auth/token/revoke-self"
LEASE_RENEW = "/v1/sys/leases/renew"
LEASE_REVOKE = "/v1/sys/leases/revoke"


class FakeVault:
    """In-process Vault answering the token and lease endpoints.

    Responses can be forced per token (``token_status``) or per lease id
    (``lease_status``) to simulate Vault refusing a request.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_ttl = 3600
        self.lease_duration = 3600
        self.token_status: dict[str, int] = {}
        self.lease_status: dict[str, int] = {}
        self.on_request: Callable[[httpx.Request], None] | None = None

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        path = request.url.path
        token = request.headers.get("X-Vault-Token", "")
        body = json.loads(request.content) if request.content else {}

        if path.startswith("/v1/auth/token/"):
            forced = self.token_status.get(token)
        else:
            forced = self.lease_status.get(body.get("lease_id", ""))
        if forced is not None:
            return httpx.Response(forced, json={"errors": [f"forced {forced}"]})

        if path == RENEW_SELF:
            return httpx.Response(
                200,
                json={
                    "auth": {
                        "client_token": token,
                        "lease_duration": self.token_ttl,
                        "renewable": True,
                    }
                },
            )
        if path == LEASE_RENEW:
            return httpx.Response(
                200,
                json={
                    "lease_id": body["lease_id"],
                    "lease_duration": self.lease_duration,
                    "renewable": True,
                },
            )
        if path in (REVOKE_SELF, LEASE_REVOKE):
            return httpx.Response(204)
        return httpx.Response(404, json={"errors": []})

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


class Seeder:
    """Seeds tokens and credentials encrypted with the scope key."""

    def __init__(self, store: InMemoryVaultStore, wrapper: Wrapper) -> None:
        self._store = store
        self._wrapper = wrapper

    def token(
        self,
        plaintext: str,
        *,
        status: TokenStatus = TokenStatus.CURRENT,
        last_renewal: datetime | None = None,
        expiration: datetime | None = None,
        wrapper: Wrapper | None = None,
    ) -> Token:
        """Add a token; by default one that is due for renewal."""
        now = utc_now()
        wrapper = wrapper or self._wrapper
        token = Token(
            token_hmac=self._wrapper.hmac(plaintext.encode()),
            store_id=STORE_ID,
            status=status,
            key_id=wrapper.key_id,
            ct_token=wrapper.encrypt(plaintext.encode()),
            last_renewal_time=last_renewal or now - timedelta(hours=1),
            expiration_time=expiration or now + timedelta(minutes=5),
        )
        self._store.add_token(token)
        return token

    def credential(
        self,
        token: Token,
        public_id: str,
        *,
        status: CredentialStatus = CredentialStatus.ACTIVE,
        last_renewal: datetime | None = None,
        expiration: datetime | None = None,
    ) -> Credential:
        """Add a credential; by default one that is due for renewal."""
        now = utc_now()
        credential = Credential(
            public_id=public_id,
            library_id=LIBRARY_ID,
            session_id="s_1234567890",
            token_hmac=token.token_hmac,
            external_id=f"database/creds/app/{public_id}",
            status=status,
            last_renewal_time=last_renewal or now - timedelta(hours=1),
            expiration_time=expiration or now + timedelta(minutes=5),
        )
        self._store.add_credential(credential)
        return credential


def assert_close(actual: datetime, expected: datetime, tolerance: float = 5.0) -> None:
    """Assert two times are within ``tolerance`` seconds of each other."""
    assert abs((actual - expected).total_seconds()) < tolerance
