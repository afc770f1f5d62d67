"""Scope key management.

Secret material stored for credential stores (Vault tokens) is encrypted at
rest with a per-scope key. The jobs resolve a ``Wrapper`` for the item's scope
and the ``DATABASE`` purpose, then decrypt the stored token with it.

Usage:
    from warden.kms import KeyPurpose, StaticKeyProvider

    kms = StaticKeyProvider()
    kms.generate_key("o_1234567890")
    wrapper = await kms.get_wrapper("o_1234567890", KeyPurpose.DATABASE)
"""

from warden.kms.provider import KeyProvider, StaticKeyProvider
from warden.kms.wrapper import KeyPurpose, KmsError, Wrapper, hmac_token

__all__ = [
    "KeyProvider",
    "KeyPurpose",
    "KmsError",
    "StaticKeyProvider",
    "Wrapper",
    "hmac_token",
]
