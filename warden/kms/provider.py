"""Key provider interface and a static, configuration-backed implementation."""

from abc import ABC, abstractmethod

from cryptography.fernet import Fernet

from warden.kms.wrapper import KeyPurpose, KmsError, Wrapper
from warden.observability.logging import get_logger

logger = get_logger(__name__)


class KeyProvider(ABC):
    """Abstract interface for resolving scope keys."""

    @abstractmethod
    async def get_wrapper(self, scope_id: str, purpose: KeyPurpose) -> Wrapper:
        """Get the wrapper for a scope and key purpose.

        Raises:
            KmsError: If no key exists for the scope and purpose
        """
        pass


class StaticKeyProvider(KeyProvider):
    """Key provider holding keys in memory.

    Keys are loaded from configuration (``[kms.keys]``) or added at runtime.
    Suitable for single-node deployments and tests.
    """

    def __init__(self, keys: dict[str, bytes | str] | None = None) -> None:
        """Initialize provider.

        Args:
            keys: Mapping of scope_id to Fernet key, used for the DATABASE purpose
        """
        self._wrappers: dict[tuple[str, KeyPurpose], Wrapper] = {}
        for scope_id, key in (keys or {}).items():
            self.add_key(scope_id, key)

    def add_key(
        self,
        scope_id: str,
        key: bytes | str,
        purpose: KeyPurpose = KeyPurpose.DATABASE,
    ) -> Wrapper:
        """Register a key for a scope and purpose."""
        wrapper = Wrapper(f"{scope_id}_{purpose.value}", key)
        self._wrappers[(scope_id, purpose)] = wrapper
        logger.debug("scope_key_added", scope_id=scope_id, purpose=purpose.value)
        return wrapper

    def generate_key(
        self,
        scope_id: str,
        purpose: KeyPurpose = KeyPurpose.DATABASE,
    ) -> Wrapper:
        """Generate and register a fresh key for a scope and purpose."""
        return self.add_key(scope_id, Fernet.generate_key(), purpose)

    async def get_wrapper(self, scope_id: str, purpose: KeyPurpose) -> Wrapper:
        wrapper = self._wrappers.get((scope_id, purpose))
        if wrapper is None:
            raise KmsError(f"no {purpose.value} key for scope {scope_id}")
        return wrapper
