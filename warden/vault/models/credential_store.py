"""Credential store model."""

from pydantic import BaseModel, ConfigDict, Field


class CredentialStore(BaseModel):
    """A Vault credential store: where and how to reach Vault for a scope."""

    model_config = ConfigDict(frozen=False)

    public_id: str = Field(..., description="Unique identifier")
    scope_id: str = Field(..., description="Owning scope")
    name: str | None = Field(default=None, description="Display name")
    vault_address: str = Field(..., description="Vault address")
    namespace: str | None = Field(default=None, description="Vault namespace")
    ca_cert: bytes | None = Field(default=None, repr=False, description="PEM CA bundle")
    tls_server_name: str | None = Field(default=None, description="SNI host name")
    tls_skip_verify: bool = Field(default=False, description="Disable TLS verification")
