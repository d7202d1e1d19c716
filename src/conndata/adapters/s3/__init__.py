from .adapter import AwsS3Adapter, data_prefix, parse_table_prefix
from .client import build_s3_client, translate_aws_error
from .runs import activities_prefix, find_latest_run_with_data, order_newest_first

__all__ = [
    "AwsS3Adapter",
    "activities_prefix",
    "build_s3_client",
    "data_prefix",
    "find_latest_run_with_data",
    "order_newest_first",
    "parse_table_prefix",
    "translate_aws_error",
]
