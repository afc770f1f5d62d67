"""Read models joining tokens and credentials with their store's connection material.

These are what the jobs select. They carry the encrypted store token and know
how to decrypt it and build a Vault client from the result.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from warden.kms import KmsError, Wrapper
from warden.vault.client import ClientConfig, ClientFactory, VaultClient, VaultClientError
from warden.vault.models.credential import Credential
from warden.vault.models.enums import CredentialStatus, TokenStatus
from warden.vault.models.token import Token


class VaultConnection(BaseModel):
    """Connection material of a credential store plus its encrypted token."""

    model_config = ConfigDict(frozen=False)

    store_id: str
    scope_id: str
    vault_address: str
    namespace: str | None = None
    ca_cert: bytes | None = Field(default=None, repr=False)
    tls_server_name: str | None = None
    tls_skip_verify: bool = False

    token_hmac: bytes | None = None
    ct_token: bytes | None = Field(default=None, repr=False)
    key_id: str | None = None
    token: SecretStr | None = Field(default=None, exclude=True)

    def decrypt(self, wrapper: Wrapper) -> None:
        """Decrypt the stored token with the scope wrapper.

        Raises:
            KmsError: If the ciphertext cannot be decrypted with the wrapper
        """
        if self.ct_token is None:
            return
        try:
            self.token = SecretStr(wrapper.decrypt(self.ct_token).decode())
        except UnicodeDecodeError as e:
            raise KmsError(f"token for store {self.store_id} is not valid UTF-8", cause=e) from e

    def client_config(self) -> ClientConfig:
        if self.token is None:
            raise VaultClientError(f"store {self.store_id} has no decrypted token")
        return ClientConfig(
            addr=self.vault_address,
            token=self.token,
            namespace=self.namespace,
            ca_cert=self.ca_cert,
            tls_server_name=self.tls_server_name,
            tls_skip_verify=self.tls_skip_verify,
        )

    def client(self, factory: ClientFactory) -> VaultClient:
        """Build a Vault client authenticated with the decrypted token."""
        return factory(self.client_config())


class PrivateStore(VaultConnection):
    """A credential store with one of its renewable/revocable tokens."""

    token_status: TokenStatus | None = None
    token_last_renewal_time: datetime | None = None
    token_expiration_time: datetime | None = None

    def to_token(self) -> Token | None:
        """The store's token, or None when the store holds no token."""
        if (
            self.token_hmac is None
            or self.ct_token is None
            or self.token_expiration_time is None
        ):
            return None
        return Token(
            token_hmac=self.token_hmac,
            store_id=self.store_id,
            status=self.token_status or TokenStatus.CURRENT,
            key_id=self.key_id or "",
            ct_token=self.ct_token,
            last_renewal_time=self.token_last_renewal_time or self.token_expiration_time,
            expiration_time=self.token_expiration_time,
        )


class PrivateCredential(VaultConnection):
    """A credential with the connection material of the store that issued it."""

    public_id: str
    library_id: str
    session_id: str | None = None
    external_id: str
    status: CredentialStatus
    last_renewal_time: datetime
    expiration_time: datetime

    @property
    def lease_duration(self) -> timedelta:
        return self.expiration_time - self.last_renewal_time

    def to_credential(self) -> Credential:
        return Credential(
            public_id=self.public_id,
            library_id=self.library_id,
            session_id=self.session_id,
            token_hmac=self.token_hmac or b"",
            external_id=self.external_id,
            status=self.status,
            last_renewal_time=self.last_renewal_time,
            expiration_time=self.expiration_time,
        )
