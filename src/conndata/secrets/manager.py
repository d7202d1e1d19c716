from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, SecretStr

from conndata.configs.secrets import AwsSecretConfig, SecretProviderConfig
from .interfaces import SecretProvider
from .providers.env import EnvironmentSecretProvider
import logging

logger = logging.getLogger(__name__)


def _is_reference(value: str) -> bool:
    return value.startswith("${") and value.endswith("}")


class SecretManager:
    """Manages secret resolution using registered providers."""

    def __init__(self):
        self._providers: Dict[str, SecretProvider] = {
            "env": EnvironmentSecretProvider()
        }

    def register_provider(self, provider_id: str, provider: SecretProvider) -> None:
        self._providers[provider_id] = provider

    def configure(self, configs: List[SecretProviderConfig]) -> None:
        """Configures providers from a list of configuration objects.

        Configuration values may themselves be secret references (e.g.
        "${env:AWS_PROFILE}"); they are resolved with the providers already
        registered before the new provider is created.

        Args:
            configs: A list of SecretProviderConfig objects.
        """
        from .providers.aws import AwsSecretProvider

        for config in configs:
            if config.type == "env":
                continue

            updates = {}
            for key, value in config.model_dump(exclude={"id", "type"}).items():
                if isinstance(value, str) and _is_reference(value):
                    updates[key] = self.resolve(value)
            resolved_config = config.model_copy(update=updates)

            if isinstance(resolved_config, AwsSecretConfig):
                provider = AwsSecretProvider(
                    region_name=resolved_config.region_name,
                    profile_name=resolved_config.profile_name,
                )
            else:
                raise ValueError(f"Unknown secret provider type: '{config.type}'")

            self.register_provider(config.id, provider)
            logger.info(f"Registered secret provider '{config.id}' (type: {config.type})")

    def resolve(self, secret_ref: str) -> str:
        """Resolves a secret reference string.

        Format: ${provider_id:key}

        Args:
            secret_ref: The reference string to resolve.

        Returns:
            str: The resolved secret value.

        Raises:
            ValueError: If the format is invalid, provider is unknown, or secret
                is not found.
        """
        cleaned_ref = secret_ref.replace('${', '').replace('}', '')

        parts = cleaned_ref.split(':', 1)
        if len(parts) != 2:
            raise ValueError(f"Invalid secret format '{secret_ref}'. Expected '${{provider_id:key}}'.")

        provider_id, key = parts
        provider = self._providers.get(provider_id)
        if not provider:
            raise ValueError(f"Unknown secret provider ID: '{provider_id}'")

        val = provider.get_secret(key)
        if val is not None:
            return val

        raise ValueError(f"Secret not found: {secret_ref}")

    def resolve_object(self, obj: Any) -> Any:
        """Recursively resolves secret references in a generic object.

        Traverses Pydantic models, dicts and lists and resolves any string
        values matching "${...}". SecretStr values are unwrapped, resolved and
        re-wrapped.
        """
        if isinstance(obj, str):
            if _is_reference(obj):
                return self.resolve(obj)
            return obj

        if isinstance(obj, SecretStr):
            secret_val = obj.get_secret_value()
            if secret_val and _is_reference(secret_val):
                return SecretStr(self.resolve(secret_val))
            return obj

        if isinstance(obj, BaseModel):
            updates = {}
            for field_name in type(obj).model_fields.keys():
                val = getattr(obj, field_name)
                resolved = self.resolve_object(val)
                if resolved is not val:
                    updates[field_name] = resolved

            if updates:
                return obj.model_copy(update=updates)
            return obj

        if isinstance(obj, list):
            return [self.resolve_object(item) for item in obj]

        if isinstance(obj, dict):
            return {k: self.resolve_object(v) for k, v in obj.items()}

        return obj


secret_manager = SecretManager()
