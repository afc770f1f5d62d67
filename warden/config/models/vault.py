"""Vault client configuration."""

from pydantic import BaseModel, Field


class VaultConfig(BaseModel):
    """Settings applied to every Vault client the jobs build."""

    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    user_agent: str = Field(default="warden", description="User-Agent sent to Vault")
