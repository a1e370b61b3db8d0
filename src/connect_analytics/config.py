"""Configuration management for the cross-account analytics tooling."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigurationError(ValueError):
    """Raised when a required setting cannot be resolved."""


class AWSConfig(BaseModel):
    """AWS account and region settings."""

    region: str = Field(default_factory=lambda: os.getenv("AWS_REGION", "ap-southeast-2"))
    producer_account_id: Optional[str] = Field(default_factory=lambda: os.getenv("PRODUCER_ACCOUNT_ID"))
    consumer_account_id: Optional[str] = Field(default_factory=lambda: os.getenv("CONSUMER_ACCOUNT_ID"))


class CatalogConfig(BaseModel):
    """Glue Data Catalog settings for both sides of the share."""

    consumer_database: str = Field(
        default_factory=lambda: os.getenv("CONSUMER_DATABASE", "connect_analytics_consumer")
    )
    producer_database: str = Field(
        default_factory=lambda: os.getenv("PRODUCER_DATABASE", "connect_datalake")
    )
    link_suffix: str = Field(default_factory=lambda: os.getenv("RESOURCE_LINK_SUFFIX", "_link"))


class LambdaConfig(BaseModel):
    """Export Lambda settings."""

    role_name: str = Field(
        default_factory=lambda: os.getenv("LAMBDA_ROLE_NAME", "connect-analytics-lambda-execution-role")
    )
    function_name: str = Field(
        default_factory=lambda: os.getenv("LAMBDA_FUNCTION_NAME", "connect-analytics-users-export")
    )

    def role_arn(self, account_id: str) -> str:
        """Build the execution role ARN for the given account."""
        return f"arn:aws:iam::{account_id}:role/{self.role_name}"


class AthenaConfig(BaseModel):
    """Athena settings."""

    workgroup: str = Field(default_factory=lambda: os.getenv("ATHENA_WORKGROUP", "connect_analytics_workgroup"))
    results_bucket: str = Field(default_factory=lambda: os.getenv("ATHENA_RESULTS_BUCKET", ""))
    poll_interval_seconds: float = Field(
        default_factory=lambda: float(os.getenv("ATHENA_POLL_INTERVAL", "2"))
    )
    query_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("ATHENA_QUERY_TIMEOUT", "280"))
    )

    @property
    def output_location(self) -> Optional[str]:
        """S3 location for query results, None when the workgroup decides."""
        if not self.results_bucket:
            return None
        return f"s3://{self.results_bucket}/athena-results/"


class VerificationConfig(BaseModel):
    """Deployment verification settings."""

    query_role_name: str = Field(
        default_factory=lambda: os.getenv("QUERY_ROLE_NAME", "connect_analytics_query_role")
    )
    expected_link_count: int = Field(default_factory=lambda: int(os.getenv("EXPECTED_LINK_COUNT", "4")))
    terraform_dir: str = Field(default_factory=lambda: os.getenv("TERRAFORM_DIR", "."))


class Config(BaseModel):
    """Main configuration object."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    lambda_: LambdaConfig = Field(default_factory=LambdaConfig)
    athena: AthenaConfig = Field(default_factory=AthenaConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)

    # Project settings
    project_name: str = "connect-analytics"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "dev"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    grant_delay_seconds: float = Field(default_factory=lambda: float(os.getenv("GRANT_DELAY_SECONDS", "1")))
    metadata_output_file: str = Field(
        default_factory=lambda: os.getenv("METADATA_OUTPUT_FILE", "amazon_connect_tables_metadata.csv")
    )


def resolve_producer_account_id(cfg: Optional[Config] = None, working_dir: Optional[str] = None) -> str:
    """
    Resolve the producer account (catalog) ID.

    The configured value wins; otherwise the ``producer_account_info``
    Terraform output is read from ``working_dir`` (default: the configured
    Terraform directory).

    Raises:
        ConfigurationError: If no producer account ID can be found.
    """
    cfg = cfg or config
    if cfg.aws.producer_account_id:
        return cfg.aws.producer_account_id

    from .utils.terraform import terraform_output

    info = terraform_output(
        "producer_account_info", working_dir=working_dir or cfg.verification.terraform_dir
    )
    if isinstance(info, dict) and info.get("account_id"):
        return str(info["account_id"])

    raise ConfigurationError(
        "Producer account ID not set. Export PRODUCER_ACCOUNT_ID=111111111111 "
        "or run from the Terraform directory."
    )


def resolve_consumer_account_id(cfg: Optional[Config] = None) -> str:
    """
    Resolve the consumer account ID, falling back to the caller identity.
    """
    cfg = cfg or config
    if cfg.aws.consumer_account_id:
        return cfg.aws.consumer_account_id

    from .utils.aws_helpers import get_account_id

    return get_account_id(cfg.aws.region)


# Global configuration instance
config = Config()
