"""Dynamic credential models."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from warden.vault.models.enums import CredentialStatus
from warden.vault.models.token import utc_now


class Credential(BaseModel):
    """A dynamic secret leased from Vault on behalf of a session."""

    model_config = ConfigDict(frozen=False)

    public_id: str = Field(..., description="Unique identifier")
    library_id: str = Field(..., description="Credential library that issued it")
    session_id: str | None = Field(default=None, description="Session it was issued to")
    token_hmac: bytes = Field(..., description="HMAC of the token that leased it")
    external_id: str = Field(..., description="Vault lease id")
    status: CredentialStatus = Field(
        default=CredentialStatus.ACTIVE,
        description="Lifecycle status",
    )
    last_renewal_time: datetime = Field(default_factory=utc_now, description="Last renewal")
    expiration_time: datetime = Field(..., description="When the lease ends")

    @property
    def lease_duration(self) -> timedelta:
        """Current lease duration.

        Recomputed from the stored times on every read since Vault may grant
        a different duration on each renewal.
        """
        return self.expiration_time - self.last_renewal_time

    @property
    def renewal_time(self) -> datetime:
        return self.last_renewal_time + self.lease_duration / 2
