"""Vault token models."""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from warden.vault.models.enums import TokenStatus


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Token(BaseModel):
    """A Vault token held by a credential store.

    The plaintext token is never part of this model; ``token_hmac`` is the
    join key used to correlate credentials issued under the token.
    """

    model_config = ConfigDict(frozen=False)

    token_hmac: bytes = Field(..., description="HMAC of the plaintext token")
    store_id: str = Field(..., description="Owning credential store")
    status: TokenStatus = Field(default=TokenStatus.CURRENT, description="Lifecycle status")
    key_id: str = Field(..., description="Key that encrypted ct_token")
    ct_token: bytes = Field(..., repr=False, description="Encrypted token")
    last_renewal_time: datetime = Field(default_factory=utc_now, description="Last renewal")
    expiration_time: datetime = Field(..., description="When Vault expires the token")

    @property
    def renewal_time(self) -> datetime:
        """Renewal is due halfway between the last renewal and expiration."""
        return self.last_renewal_time + (self.expiration_time - self.last_renewal_time) / 2

    @property
    def ttl(self) -> timedelta:
        return self.expiration_time - self.last_renewal_time
