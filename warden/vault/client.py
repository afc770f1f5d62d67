"""Vault API client.

A narrow async client over the Vault HTTP API covering the calls the
renewal and revocation jobs make:

- renew-self / revoke-self on the client's own token
- renew / revoke of a lease by id

Failures surface as ``VaultResponseError`` when Vault answered with an error
status (callers branch on ``is_forbidden`` / ``is_bad_request``) and as
``VaultClientError`` for everything else (network, TLS, malformed body).

Usage:
    factory = VaultClientFactory(timeout=10.0)
    async with factory(ClientConfig(addr="https://vault:8200", token=token)) as vc:
        renewed = await vc.renew_token()
        ttl = renewed.token_ttl()
"""

import ssl
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic import ValidationError as PydanticValidationError


class VaultClientError(Exception):
    """Base exception for Vault client errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class VaultResponseError(VaultClientError):
    """Vault answered a request with an error status code."""

    def __init__(
        self,
        status_code: int,
        url: str,
        errors: list[str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.errors = errors or []
        detail = "; ".join(self.errors) if self.errors else "no error details"
        super().__init__(f"Vault returned {status_code} for {url}: {detail}")

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == httpx.codes.FORBIDDEN

    @property
    def is_bad_request(self) -> bool:
        return self.status_code == httpx.codes.BAD_REQUEST


class ClientConfig(BaseModel):
    """Connection material for one Vault client."""

    model_config = ConfigDict(frozen=True)

    addr: str = Field(..., description="Vault address, e.g. https://vault:8200")
    token: SecretStr = Field(..., description="Vault token used by the client")
    namespace: str | None = Field(default=None, description="Vault Enterprise namespace")
    ca_cert: bytes | None = Field(default=None, repr=False, description="PEM CA bundle")
    tls_server_name: str | None = Field(default=None, description="SNI host name")
    tls_skip_verify: bool = Field(default=False, description="Disable TLS verification")


class TokenAuth(BaseModel):
    """The ``auth`` block of a token response."""

    model_config = ConfigDict(extra="ignore")

    accessor: str | None = None
    lease_duration: int = 0
    renewable: bool = False
    policies: list[str] = Field(default_factory=list)


class RenewedToken(BaseModel):
    """Response to a renew-self call."""

    model_config = ConfigDict(extra="ignore")

    auth: TokenAuth | None = None
    data: dict[str, Any] | None = None

    def token_ttl(self) -> timedelta:
        """Extract the token's TTL from the response.

        Reads ``auth.lease_duration`` and falls back to ``data.ttl``.

        Raises:
            VaultClientError: If the response carries no TTL
        """
        if self.auth is not None:
            return timedelta(seconds=self.auth.lease_duration)
        if self.data is not None and "ttl" in self.data:
            try:
                return timedelta(seconds=int(self.data["ttl"]))
            except (TypeError, ValueError) as e:
                raise VaultClientError("invalid ttl in token response", cause=e) from e
        raise VaultClientError("token response has no ttl")


class LeaseRenewal(BaseModel):
    """Response to a lease renew call."""

    model_config = ConfigDict(extra="ignore")

    lease_id: str = ""
    lease_duration: int = 0
    renewable: bool = False

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.lease_duration)


class VaultClient:
    """Async client for the Vault HTTP API."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        timeout: float = 30.0,
        user_agent: str = "warden",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection material
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            transport: Custom httpx transport (tests)
        """
        self._config = config
        headers = {
            "X-Vault-Token": config.token.get_secret_value(),
            "X-Vault-Request": "true",
            "User-Agent": user_agent,
        }
        if config.namespace:
            headers["X-Vault-Namespace"] = config.namespace

        self._client = httpx.AsyncClient(
            base_url=config.addr.rstrip("/"),
            headers=headers,
            timeout=timeout,
            verify=self._verify(config),
            transport=transport,
        )

    @staticmethod
    def _verify(config: ClientConfig) -> ssl.SSLContext | bool:
        if config.tls_skip_verify:
            return False
        if config.ca_cert:
            try:
                return ssl.create_default_context(cadata=config.ca_cert.decode())
            except (ssl.SSLError, UnicodeDecodeError) as e:
                raise VaultClientError("invalid CA certificate", cause=e) from e
        return True

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        extensions = {}
        if self._config.tls_server_name:
            extensions["sni_hostname"] = self._config.tls_server_name

        try:
            response = await self._client.request(
                method=method,
                url=path,
                json=json,
                extensions=extensions or None,
            )
        except httpx.HTTPError as e:
            raise VaultClientError(f"{method} {path} failed: {e}", cause=e) from e

        if response.status_code >= 400:
            errors: list[str] = []
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                errors = [str(err) for err in body.get("errors") or []]
            elif response.text:
                errors = [response.text]
            raise VaultResponseError(response.status_code, path, errors)

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise VaultClientError(f"{method} {path} returned invalid JSON", cause=e) from e

    async def renew_token(self, increment: timedelta | None = None) -> RenewedToken:
        """Renew the client's own token (``auth/token/renew-self``)."""
        body: dict[str, Any] = {}
        if increment is not None:
            body["increment"] = int(increment.total_seconds())
        data = await self._request("POST", "/v1/auth/token/renew-self", json=body)
        try:
            return RenewedToken.model_validate(data)
        except PydanticValidationError as e:
            raise VaultClientError("unexpected renew-self response", cause=e) from e

    async def revoke_token(self) -> None:
        """Revoke the client's own token (``auth/token/revoke-self``)."""
        await self._request("POST", "/v1/auth/token/revoke-self")

    async def renew_lease(self, lease_id: str, increment: timedelta) -> LeaseRenewal:
        """Renew a lease, requesting ``increment`` as the new duration.

        Vault may grant a shorter or longer duration than requested.
        """
        data = await self._request(
            "PUT",
            "/v1/sys/leases/renew",
            json={"lease_id": lease_id, "increment": int(increment.total_seconds())},
        )
        try:
            return LeaseRenewal.model_validate(data)
        except PydanticValidationError as e:
            raise VaultClientError("unexpected lease renew response", cause=e) from e

    async def revoke_lease(self, lease_id: str) -> None:
        """Revoke a lease immediately."""
        await self._request("PUT", "/v1/sys/leases/revoke", json={"lease_id": lease_id})


ClientFactory = Callable[[ClientConfig], VaultClient]


class VaultClientFactory:
    """Builds ``VaultClient`` instances sharing timeout and transport settings."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        user_agent: str = "warden",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    def __call__(self, config: ClientConfig) -> VaultClient:
        return VaultClient(
            config,
            timeout=self._timeout,
            user_agent=self._user_agent,
            transport=self._transport,
        )
