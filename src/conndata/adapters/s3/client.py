from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from conndata.common.errors import ConnectionDataError, ConnectionFailedError, QueryError
from conndata.common.settings import settings
from conndata.connections.models import AwsS3ConnectionConfig


def _secret(value) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


def build_s3_client(config: AwsS3ConnectionConfig) -> Any:
    """Creates a boto3 S3 client from an aws_s3 connection config.

    Static keys win over a named profile; with neither, boto3's default
    credential chain applies. ``AWS_S3_ENDPOINT_URL`` overrides the endpoint
    when the connection does not set one.
    """
    creds = config.credentials
    session_kwargs = {}
    if creds is not None:
        if creds.access_key_id is not None:
            session_kwargs.update(
                aws_access_key_id=_secret(creds.access_key_id),
                aws_secret_access_key=_secret(creds.secret_access_key),
                aws_session_token=_secret(creds.session_token),
            )
        elif creds.profile:
            session_kwargs["profile_name"] = creds.profile

    session = boto3.Session(region_name=config.region, **session_kwargs)
    return session.client("s3", endpoint_url=config.endpoint or settings.aws_s3_endpoint_url)


AUTH_ERROR_CODES = frozenset({
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "NoSuchBucket",
})


def translate_aws_error(error: Exception, message: str, details: Dict[str, Any]) -> ConnectionDataError:
    """Maps a botocore failure to the connection data error taxonomy.

    Transport failures and rejected credentials (or a missing bucket) mean the
    store is unreachable; any other service error is a failed request.
    """
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        details = {**details, "aws_error_code": code}
        if code in AUTH_ERROR_CODES:
            return ConnectionFailedError(f"{message}: {error}", details=details)
        return QueryError(f"{message}: {error}", details=details)
    return ConnectionFailedError(f"{message}: {error}", details=details)
