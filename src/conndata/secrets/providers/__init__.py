from .env import EnvironmentSecretProvider
from .aws import AwsSecretProvider

__all__ = ["EnvironmentSecretProvider", "AwsSecretProvider"]
