"""AWS helper functions using Boto3."""

from typing import Any, Optional
import boto3
from botocore.exceptions import ClientError

from ..config import config
from .logger import get_logger

logger = get_logger(__name__)


def get_boto3_client(service_name: str, region: Optional[str] = None) -> Any:
    """
    Get a Boto3 client for the specified AWS service.

    Args:
        service_name: AWS service name (e.g., 'glue', 'lakeformation', 'athena')
        region: AWS region. If None, uses config default.

    Returns:
        Boto3 client instance.
    """
    region = region or config.aws.region
    logger.debug(f"Creating Boto3 client for {service_name} in {region}")
    return boto3.client(service_name, region_name=region)


def error_code(error: ClientError) -> str:
    """Extract the AWS error code from a ClientError."""
    return error.response.get('Error', {}).get('Code', '')


def get_account_id(region: Optional[str] = None) -> str:
    """
    Get the account ID of the current credentials.

    Args:
        region: AWS region. If None, uses config default.

    Returns:
        The 12-digit account ID.
    """
    sts_client = get_boto3_client('sts', region=region)
    return sts_client.get_caller_identity()['Account']


def check_s3_bucket_exists(bucket: str, region: Optional[str] = None) -> bool:
    """
    Check if an S3 bucket exists and is accessible.

    Args:
        bucket: S3 bucket name
        region: AWS region. If None, uses config default.

    Returns:
        True if bucket exists and is accessible, False otherwise.
    """
    try:
        s3_client = get_boto3_client('s3', region=region)
        s3_client.head_bucket(Bucket=bucket)
        logger.info(f"Bucket {bucket} exists and is accessible")
        return True
    except ClientError as e:
        if error_code(e) in ('404', 'NoSuchBucket'):
            logger.warning(f"Bucket {bucket} does not exist")
        else:
            logger.error(f"Error checking bucket {bucket}: {e}")
        return False


def check_iam_role_exists(role_name: str) -> Optional[str]:
    """
    Look up an IAM role.

    Args:
        role_name: IAM role name

    Returns:
        The role ARN, or None if the role does not exist.
    """
    iam_client = get_boto3_client('iam')
    try:
        response = iam_client.get_role(RoleName=role_name)
        return response['Role']['Arn']
    except ClientError as e:
        if error_code(e) == 'NoSuchEntity':
            logger.warning(f"IAM role {role_name} does not exist")
        else:
            logger.error(f"Error checking IAM role {role_name}: {e}")
        return None
