"""
Manage Glue resource links in the consumer account.

Each resource link is a table in the consumer database whose ``TargetTable``
points at the producer account's table. Creating the link with an (empty)
storage descriptor lets Glue populate the schema from the RAM / Lake
Formation share.
"""

from typing import Dict, Iterable, List, Optional
from botocore.exceptions import ClientError

from ..config import config
from ..results import BatchResult
from ..tables import link_name, table_from_link
from ..utils.aws_helpers import error_code, get_boto3_client
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ResourceLinkManager:
    """Creates, recreates and inspects resource links for shared tables."""

    def __init__(
        self,
        producer_catalog_id: str,
        consumer_database: Optional[str] = None,
        producer_database: Optional[str] = None,
        region: Optional[str] = None,
        link_suffix: Optional[str] = None
    ):
        """
        Initialize the resource link manager.

        Args:
            producer_catalog_id: Account ID owning the shared catalog.
            consumer_database: Consumer database holding the links.
            producer_database: Producer database holding the target tables.
            region: AWS region.
            link_suffix: Suffix appended to table names to form link names.
        """
        self.producer_catalog_id = producer_catalog_id
        self.consumer_database = consumer_database or config.catalog.consumer_database
        self.producer_database = producer_database or config.catalog.producer_database
        self.region = region or config.aws.region
        self.link_suffix = link_suffix or config.catalog.link_suffix
        self.glue_client = get_boto3_client('glue', region=self.region)

        logger.info(
            f"Initialized ResourceLinkManager: {self.consumer_database} -> "
            f"{self.producer_catalog_id}:{self.producer_database}"
        )

    def link_name(self, table: str) -> str:
        return link_name(table, self.link_suffix)

    def build_table_input(self, table: str) -> Dict:
        """
        Build the Glue TableInput for a resource link.

        Args:
            table: Producer table name.

        Returns:
            TableInput dictionary for glue.create_table.
        """
        return {
            'Name': self.link_name(table),
            'TargetTable': {
                'CatalogId': self.producer_catalog_id,
                'DatabaseName': self.producer_database,
                'Name': table
            },
            'TableType': 'EXTERNAL_TABLE',
            'StorageDescriptor': {
                'Location': ''
            }
        }

    def delete_link(self, table: str) -> bool:
        """
        Delete a resource link. A missing link counts as deleted.

        Returns:
            bool: True if the link no longer exists, False otherwise.
        """
        name = self.link_name(table)
        try:
            self.glue_client.delete_table(DatabaseName=self.consumer_database, Name=name)
            logger.info(f"  - Deleted existing link {name}")
            return True
        except ClientError as e:
            if error_code(e) == 'EntityNotFoundException':
                logger.debug(f"  - No existing link {name}")
                return True
            logger.warning(f"  - Could not delete {name}: {e}")
            return False

    def create_link(self, table: str) -> bool:
        """
        Create a resource link for a producer table.

        Returns:
            bool: True if successful, False otherwise.
        """
        name = self.link_name(table)
        try:
            self.glue_client.create_table(
                DatabaseName=self.consumer_database,
                TableInput=self.build_table_input(table)
            )
            logger.info(f"  ✓ Successfully created {name}")
            return True
        except ClientError as e:
            if error_code(e) == 'AlreadyExistsException':
                logger.warning(f"  - {name} already exists")
                return True
            logger.error(f"  ✗ Failed to create {name}: {e}")
            return False

    def recreate_links(self, tables: Iterable[str]) -> BatchResult:
        """
        Delete and recreate resource links so Glue re-populates their schemas.

        Args:
            tables: Producer table names.

        Returns:
            BatchResult keyed by link name.
        """
        tables = list(tables)
        result = BatchResult(operation='recreate_resource_links')
        logger.info(f"Recreating {len(tables)} resource links with storage_descriptor...")

        for table in tables:
            name = self.link_name(table)
            logger.info(f"Processing: {name}")
            # Recreate regardless of the delete outcome; create reports the failure
            self.delete_link(table)
            result.record(name, self.create_link(table))

        logger.info(
            f"Resource links recreated: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed"
        )
        return result

    def get_link(self, table: str) -> Optional[Dict]:
        """
        Fetch the Glue table definition for a resource link.

        Returns:
            The Table dictionary, None if it does not exist or cannot be read.
        """
        name = self.link_name(table)
        try:
            response = self.glue_client.get_table(DatabaseName=self.consumer_database, Name=name)
            return response['Table']
        except ClientError as e:
            if error_code(e) == 'EntityNotFoundException':
                logger.warning(f"Resource link not found: {name}")
            else:
                logger.error(f"Failed to read resource link {name}: {e}")
            return None

    def link_exists(self, table: str) -> bool:
        return self.get_link(table) is not None

    def describe_link(self, table: str) -> Optional[Dict]:
        """
        Summarize a resource link: first column, registration and target.

        Returns:
            Summary dictionary, None if the link does not exist.
        """
        link = self.get_link(table)
        if link is None:
            return None

        columns = link.get('StorageDescriptor', {}).get('Columns', [])
        return {
            'name': link['Name'],
            'first_column': columns[0]['Name'] if columns else None,
            'column_count': len(columns),
            'is_registered_with_lake_formation': link.get('IsRegisteredWithLakeFormation', False),
            'target_table': link.get('TargetTable')
        }

    def list_links(self) -> List[str]:
        """
        List resource link names in the consumer database.

        Returns:
            Link names (tables whose name ends with the link suffix).
        """
        names = []
        try:
            paginator = self.glue_client.get_paginator('get_tables')
            for page in paginator.paginate(DatabaseName=self.consumer_database):
                names.extend(
                    t['Name'] for t in page.get('TableList', [])
                    if table_from_link(t['Name'], self.link_suffix) is not None
                )
        except ClientError as e:
            logger.error(f"Failed to list tables in {self.consumer_database}: {e}")
        return names
