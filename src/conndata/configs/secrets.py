from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class BaseSecretConfig(BaseModel):
    """Base configuration for all secret providers."""
    id: str = Field(..., description="Unique identifier for this provider instance. Used as the scheme in secret references (e.g. ${id:key}).")
    type: str


class AwsSecretConfig(BaseSecretConfig):
    """Configuration for AWS Secrets Manager.

    Attributes:
        type: Must be 'aws'.
        region_name: AWS Region (e.g. us-east-1). Defaults to env var if None.
        profile_name: AWS Profile. Defaults to standard boto3 lookup if None.
    """
    type: Literal["aws"] = "aws"
    region_name: Optional[str] = Field(None, description="AWS Region. If None, uses AWS_DEFAULT_REGION env var.")
    profile_name: Optional[str] = Field(None, description="AWS Profile. If None, uses default profile.")


class EnvSecretConfig(BaseSecretConfig):
    """Configuration for Environment Variable Provider (Explicit)."""
    type: Literal["env"] = "env"


SecretProviderConfig = Union[AwsSecretConfig, EnvSecretConfig]


class SecretsFileConfig(BaseModel):
    """File-level schema for secrets.yaml."""
    version: int = Field(1, description="Schema version")
    providers: List[SecretProviderConfig] = Field(default_factory=list)
