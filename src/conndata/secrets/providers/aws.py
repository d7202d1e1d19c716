from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class AwsSecretProvider:
    """Fetches connection credentials from AWS Secrets Manager."""

    def __init__(self, region_name: Optional[str] = None, profile_name: Optional[str] = None):
        session = boto3.Session(profile_name=profile_name, region_name=region_name)
        self.client = session.client("secretsmanager")

    def get_secret(self, key: str) -> Optional[str]:
        try:
            # key is the SecretId
            response = self.client.get_secret_value(SecretId=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to fetch secret '{key}' from AWS: {e}")
            return None
        # Binary secrets are not supported for connection credentials
        return response.get("SecretString")
