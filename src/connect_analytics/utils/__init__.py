"""Utility modules for the cross-account analytics tooling."""

from .logger import get_logger
from .aws_helpers import (
    get_boto3_client,
    get_account_id,
    error_code,
    check_s3_bucket_exists,
    check_iam_role_exists,
)
from .terraform import terraform_output, terraform_state_list

__all__ = [
    "get_logger",
    "get_boto3_client",
    "get_account_id",
    "error_code",
    "check_s3_bucket_exists",
    "check_iam_role_exists",
    "terraform_output",
    "terraform_state_list",
]
