"""
Lake Formation permission grants for cross-account access.

Querying through a resource link needs two grants for the same principal:
DESCRIBE on the link in the consumer catalog and SELECT on the target table
in the producer catalog.
"""

import json
import time
from typing import Dict, Iterable, List, Optional
from botocore.exceptions import ClientError

from ..catalog.resource_links import ResourceLinkManager
from ..config import config
from ..results import BatchResult
from ..tables import link_name
from ..utils.aws_helpers import error_code, get_boto3_client
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LakeFormationPermissions:
    """Grants and inspects Lake Formation permissions for one principal."""

    def __init__(
        self,
        principal_arn: str,
        consumer_account_id: Optional[str] = None,
        producer_account_id: Optional[str] = None,
        consumer_database: Optional[str] = None,
        producer_database: Optional[str] = None,
        region: Optional[str] = None,
        dry_run: bool = False,
        delay_seconds: Optional[float] = None,
        link_manager: Optional[ResourceLinkManager] = None,
        link_suffix: Optional[str] = None
    ):
        """
        Initialize the permission granter.

        Args:
            principal_arn: IAM principal receiving the grants.
            consumer_account_id: Account holding the resource links.
            producer_account_id: Account owning the target tables.
            consumer_database: Consumer database name.
            producer_database: Producer database name.
            region: AWS region.
            dry_run: If True, only log the grants that would be made.
            delay_seconds: Pause between grants to stay under API rate limits.
            link_manager: Used to check that links exist before granting.
            link_suffix: Link name suffix. Defaults to the link manager's, then config.
        """
        self.principal_arn = principal_arn
        self.consumer_account_id = consumer_account_id
        self.producer_account_id = producer_account_id
        self.consumer_database = consumer_database or config.catalog.consumer_database
        self.producer_database = producer_database or config.catalog.producer_database
        self.region = region or config.aws.region
        self.dry_run = dry_run
        self.delay_seconds = config.grant_delay_seconds if delay_seconds is None else delay_seconds
        self.link_manager = link_manager
        if link_suffix is None:
            link_suffix = link_manager.link_suffix if link_manager is not None else config.catalog.link_suffix
        self.link_suffix = link_suffix
        self.lakeformation_client = get_boto3_client('lakeformation', region=self.region)

        if dry_run:
            logger.info("DRY RUN MODE - No permissions will be granted")

    def link_name(self, table: str) -> str:
        return link_name(table, self.link_suffix)

    def _link_resource(self, table: str, with_catalog: bool = False) -> Dict:
        resource = {'DatabaseName': self.consumer_database, 'Name': self.link_name(table)}
        if with_catalog and self.consumer_account_id:
            resource['CatalogId'] = self.consumer_account_id
        return {'Table': resource}

    def _producer_resource(self, table: str) -> Dict:
        return {
            'Table': {
                'CatalogId': self.producer_account_id,
                'DatabaseName': self.producer_database,
                'Name': table
            }
        }

    def grant(
        self,
        resource: Dict,
        permissions: List[str],
        catalog_id: Optional[str] = None,
        description: str = ""
    ) -> bool:
        """
        Grant permissions on a single resource.

        Returns:
            bool: True if granted (or would be, in dry-run), False otherwise.
        """
        params = {
            'Principal': {'DataLakePrincipalIdentifier': self.principal_arn},
            'Resource': resource,
            'Permissions': permissions
        }
        if catalog_id:
            params['CatalogId'] = catalog_id

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would grant {','.join(permissions)}: {json.dumps(params)}")
            return True

        try:
            logger.info(f"Executing: {description or 'grant ' + ','.join(permissions)}")
            self.lakeformation_client.grant_permissions(**params)
            logger.info("  ✅ SUCCESS")
            return True
        except ClientError as e:
            logger.error(f"  ❌ FAILED ({error_code(e)}): {e}")
            return False

    def _pause(self) -> None:
        if self.delay_seconds and not self.dry_run:
            time.sleep(self.delay_seconds)

    def _link_exists(self, table: str) -> bool:
        if self.link_manager is None:
            return True
        return self.link_manager.link_exists(table)

    def grant_describe_on_links(self, tables: Iterable[str]) -> BatchResult:
        """
        Grant DESCRIBE on every resource link without checking existence.

        Returns:
            BatchResult keyed by link name.
        """
        result = BatchResult(operation='grant_describe_on_links')
        logger.info("Granting DESCRIBE permissions on all resource links...")

        for table in tables:
            name = self.link_name(table)
            ok = self.grant(
                self._link_resource(table),
                ['DESCRIBE'],
                description=f"Grant DESCRIBE on {name}"
            )
            result.record(name, ok)

        return result

    def grant_select_on_producer_tables(self, tables: Iterable[str]) -> BatchResult:
        """
        Grant SELECT on producer target tables whose resource link exists.

        Returns:
            BatchResult keyed by producer table name.
        """
        result = BatchResult(operation='grant_select_on_producer_tables')
        logger.info("=== Granting SELECT Permissions on Producer Target Tables ===")

        for table in tables:
            logger.info(f"Processing table: {table}")
            if not self._link_exists(table):
                logger.warning(f"Skipping {table} - resource link not found")
                result.skipped.append(table)
                continue

            ok = self.grant(
                self._producer_resource(table),
                ['SELECT'],
                catalog_id=self.producer_account_id,
                description=f"Grant SELECT on {table} (producer account)"
            )
            result.record(table, ok)
            self._pause()

        return result

    def grant_describe_on_existing_links(self, tables: Iterable[str]) -> BatchResult:
        """
        Grant DESCRIBE on the resource links that exist in the consumer catalog.

        Returns:
            BatchResult keyed by link name.
        """
        result = BatchResult(operation='grant_describe_on_existing_links')
        logger.info("=== Granting DESCRIBE Permissions on Consumer Resource Links ===")

        for table in tables:
            name = self.link_name(table)
            if not self._link_exists(table):
                result.skipped.append(name)
                continue

            ok = self.grant(
                self._link_resource(table, with_catalog=True),
                ['DESCRIBE'],
                catalog_id=self.consumer_account_id,
                description=f"Grant DESCRIBE on {name} (consumer account)"
            )
            result.record(name, ok)
            self._pause()

        return result

    def list_link_permissions(self, table: str) -> List[str]:
        """
        List the permissions the principal holds on a resource link.

        Returns:
            Permission names, empty if none or on error.
        """
        try:
            response = self.lakeformation_client.list_permissions(
                Principal={'DataLakePrincipalIdentifier': self.principal_arn},
                Resource=self._link_resource(table)
            )
        except ClientError as e:
            logger.warning(f"Could not list permissions on {self.link_name(table)}: {e}")
            return []

        permissions = []
        for entry in response.get('PrincipalResourcePermissions', []):
            permissions.extend(entry.get('Permissions', []))
        return permissions


def list_principal_permissions(principal_arn: str, region: Optional[str] = None) -> List[Dict]:
    """
    List every Lake Formation permission entry held by a principal.

    Returns:
        PrincipalResourcePermissions entries, empty if none or on error.
    """
    client = get_boto3_client('lakeformation', region=region)
    entries: List[Dict] = []
    params = {'Principal': {'DataLakePrincipalIdentifier': principal_arn}}

    try:
        while True:
            response = client.list_permissions(**params)
            entries.extend(response.get('PrincipalResourcePermissions', []))
            token = response.get('NextToken')
            if not token:
                break
            params['NextToken'] = token
    except ClientError as e:
        logger.warning(f"Could not list Lake Formation permissions for {principal_arn}: {e}")

    return entries
