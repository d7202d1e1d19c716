from .connections import ConnectionsFileConfig
from .jobs import JobRunsFileConfig
from .secrets import SecretProviderConfig, SecretsFileConfig, AwsSecretConfig, EnvSecretConfig

__all__ = [
    "ConnectionsFileConfig",
    "JobRunsFileConfig",
    "SecretProviderConfig",
    "SecretsFileConfig",
    "AwsSecretConfig",
    "EnvSecretConfig",
]
