"""Scope key configuration."""

from pydantic import BaseModel, Field, SecretStr


class KmsConfig(BaseModel):
    """Static scope keys used to decrypt stored Vault tokens."""

    keys: dict[str, SecretStr] = Field(
        default_factory=dict,
        description="scope_id -> url-safe base64 Fernet key (DATABASE purpose)",
    )
