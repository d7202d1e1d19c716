from .manager import secret_manager, SecretManager
from .interfaces import SecretProvider

__all__ = ["secret_manager", "SecretManager", "SecretProvider"]
