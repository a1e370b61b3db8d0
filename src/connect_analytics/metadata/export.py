"""
Export column-level metadata for the shared Amazon Connect tables.

Metadata is read through the consumer resource links and written to a
single CSV file with one row per column.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from botocore.exceptions import ClientError

from ..config import config
from ..tables import category_of, link_name
from ..utils.aws_helpers import error_code, get_boto3_client
from ..utils.logger import get_logger

logger = get_logger(__name__)

CSV_COLUMNS = [
    "Table Name",
    "Column Name",
    "Data Type",
    "Description",
    "Is Partition Key",
    "Table Location",
    "Table Type",
    "Last Updated",
    "Table Description",
]


@dataclass
class ExportSummary:
    """Outcome of a metadata export run."""

    output_file: str
    requested: int
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    row_count: int = 0

    @property
    def all_succeeded(self) -> bool:
        return len(self.succeeded) == self.requested


class TableMetadataExporter:
    """Reads Glue table definitions through resource links and exports them."""

    def __init__(self, consumer_database: Optional[str] = None, region: Optional[str] = None):
        self.consumer_database = consumer_database or config.catalog.consumer_database
        self.region = region or config.aws.region
        self.glue_client = get_boto3_client('glue', region=self.region)
        self.sts_client = get_boto3_client('sts', region=self.region)

    def validate_access(self) -> bool:
        """
        Check that credentials work and the consumer database exists.

        Returns:
            bool: True if both checks pass.
        """
        logger.info("Validating AWS credentials and access...")
        try:
            self.sts_client.get_caller_identity()
        except ClientError as e:
            logger.error(f"AWS authentication failed. Please check your credentials: {e}")
            return False

        try:
            self.glue_client.get_database(Name=self.consumer_database)
        except ClientError as e:
            if error_code(e) == 'EntityNotFoundException':
                logger.error(f"Database '{self.consumer_database}' not found in region '{self.region}'")
                logger.error("Please ensure the consumer account is properly set up with resource links.")
            else:
                logger.error(f"Failed to read database '{self.consumer_database}': {e}")
            return False

        logger.info("AWS access validated successfully")
        return True

    def extract_table_metadata(self, table: str) -> Optional[List[Dict[str, str]]]:
        """
        Build CSV rows for one table.

        Args:
            table: Producer table name; read via its resource link.

        Returns:
            One row per column (partition keys included), None if the table
            could not be read.
        """
        name = link_name(table)
        logger.info(f"→ Processing table: {table} [{category_of(table) or 'Uncategorized'}] (resource link: {name})")

        try:
            response = self.glue_client.get_table(DatabaseName=self.consumer_database, Name=name)
        except ClientError as e:
            logger.warning(f"Could not retrieve metadata for table {table}: {e}")
            return None

        definition = response.get('Table', {})
        storage = definition.get('StorageDescriptor', {})
        update_time = definition.get('UpdateTime')

        table_fields = {
            "Table Location": storage.get('Location', "Unknown"),
            "Table Type": definition.get('TableType', "Unknown"),
            "Last Updated": update_time.isoformat() if hasattr(update_time, 'isoformat')
            else (update_time or "Unknown"),
            "Table Description": definition.get('Description', ""),
        }

        partition_keys = definition.get('PartitionKeys', [])
        partition_names = {key['Name'] for key in partition_keys}

        rows = []
        for column in storage.get('Columns', []) + partition_keys:
            rows.append({
                "Table Name": table,
                "Column Name": column['Name'],
                "Data Type": column.get('Type', "Unknown"),
                "Description": column.get('Comment', ""),
                "Is Partition Key": "YES" if column['Name'] in partition_names else "NO",
                **table_fields,
            })

        logger.info(f"✓ Processed table: {table} ({len(rows)} columns)")
        return rows

    def export(self, tables: Iterable[str], output_file: Optional[str] = None) -> ExportSummary:
        """
        Export metadata for all tables to a CSV file.

        The header is written even when no table could be read.

        Returns:
            ExportSummary for the run.
        """
        tables = list(tables)
        output_file = output_file or config.metadata_output_file
        summary = ExportSummary(output_file=output_file, requested=len(tables))

        logger.info(f"Starting metadata export for {len(tables)} tables...")
        logger.info(f"Target database: {self.consumer_database}")
        logger.info(f"Output file: {output_file}")

        all_rows: List[Dict[str, str]] = []
        for table in tables:
            rows = self.extract_table_metadata(table)
            if rows is None:
                summary.failed.append(table)
                continue
            summary.succeeded.append(table)
            all_rows.extend(rows)

        df = pd.DataFrame(all_rows, columns=CSV_COLUMNS)
        Path(output_file).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_file, index=False, quoting=csv.QUOTE_ALL)
        summary.row_count = len(df)

        self._log_summary(summary, df)
        return summary

    def _log_summary(self, summary: ExportSummary, df: pd.DataFrame) -> None:
        logger.info("=" * 40)
        logger.info("Export Summary")
        logger.info("=" * 40)
        logger.info(f"Total tables requested: {summary.requested}")
        logger.info(f"Tables processed: {len(summary.succeeded)}")
        logger.info(f"Columns exported: {summary.row_count}")
        logger.info(f"Output file: {summary.output_file}")

        if summary.all_succeeded:
            logger.info("All tables processed successfully!")
        else:
            logger.warning(f"Tables not processed: {', '.join(summary.failed)}")

        if not df.empty:
            logger.info(f"Sample output:\n{df.head(5).to_string(index=False)}")
