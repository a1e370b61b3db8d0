"""
Run Athena queries against the consumer database.

Queries go through resource links, so a successful query proves that both
the DESCRIBE grant on the link and the SELECT grant on the producer table
are in place.
"""

import time
from typing import Dict, List, Optional
from botocore.exceptions import ClientError

from ..config import config
from ..tables import link_name
from ..utils.aws_helpers import get_boto3_client
from ..utils.logger import get_logger

logger = get_logger(__name__)

TERMINAL_STATES = ('SUCCEEDED', 'FAILED', 'CANCELLED')


class QueryExecutionError(RuntimeError):
    """Raised when an Athena query ends in FAILED or CANCELLED."""

    def __init__(self, execution_id: str, state: str, reason: str = ''):
        self.execution_id = execution_id
        self.state = state
        self.reason = reason
        super().__init__(f"Query {execution_id} {state}: {reason or 'no reason given'}")


class QueryTimeoutError(QueryExecutionError):
    """Raised when an Athena query does not finish within the timeout."""


class AthenaQueryRunner:
    """Starts Athena queries, waits for them and reads their results."""

    def __init__(
        self,
        workgroup: Optional[str] = None,
        database: Optional[str] = None,
        output_location: Optional[str] = None,
        region: Optional[str] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None
    ):
        self.workgroup = workgroup or config.athena.workgroup
        self.database = database or config.catalog.consumer_database
        self.output_location = output_location or config.athena.output_location
        self.poll_interval = poll_interval if poll_interval is not None else config.athena.poll_interval_seconds
        self.timeout = timeout if timeout is not None else config.athena.query_timeout_seconds
        self.athena_client = get_boto3_client('athena', region=region)

    def start(self, sql: str) -> str:
        """
        Start a query execution.

        Returns:
            The query execution ID.
        """
        params = {
            'QueryString': sql,
            'QueryExecutionContext': {'Database': self.database},
            'WorkGroup': self.workgroup
        }
        if self.output_location:
            params['ResultConfiguration'] = {'OutputLocation': self.output_location}

        response = self.athena_client.start_query_execution(**params)
        execution_id = response['QueryExecutionId']
        logger.info(f"Started query {execution_id} in workgroup {self.workgroup}")
        return execution_id

    def wait(self, execution_id: str) -> Dict:
        """
        Poll until the query reaches a terminal state.

        Returns:
            The QueryExecution dictionary of a succeeded query.

        Raises:
            QueryExecutionError: If the query failed or was cancelled.
            QueryTimeoutError: If the timeout elapsed first.
        """
        deadline = time.monotonic() + self.timeout

        while True:
            response = self.athena_client.get_query_execution(QueryExecutionId=execution_id)
            execution = response['QueryExecution']
            status = execution['Status']
            state = status['State']

            if state == 'SUCCEEDED':
                logger.info(f"Query {execution_id} succeeded")
                return execution
            if state in TERMINAL_STATES:
                raise QueryExecutionError(execution_id, state, status.get('StateChangeReason', ''))

            if time.monotonic() >= deadline:
                raise QueryTimeoutError(execution_id, state, f"still {state} after {self.timeout}s")

            logger.debug(f"Query {execution_id} is {state}, waiting {self.poll_interval}s")
            time.sleep(self.poll_interval)

    def fetch_rows(self, execution_id: str) -> List[Dict[str, Optional[str]]]:
        """
        Read all result rows of a finished query.

        Returns:
            One dictionary per row keyed by column name.
        """
        paginator = self.athena_client.get_paginator('get_query_results')
        header: Optional[List[str]] = None
        rows = []

        for page in paginator.paginate(QueryExecutionId=execution_id):
            for row in page['ResultSet']['Rows']:
                values = [datum.get('VarCharValue') for datum in row.get('Data', [])]
                # The first row of the first page carries the column names
                if header is None:
                    header = values
                    continue
                rows.append(dict(zip(header, values)))

        return rows

    def run(self, sql: str) -> List[Dict[str, Optional[str]]]:
        """Start a query, wait for it and return its rows."""
        execution_id = self.start(sql)
        self.wait(execution_id)
        return self.fetch_rows(execution_id)


def check_cross_account_access(
    runner: Optional[AthenaQueryRunner] = None,
    table: str = "users"
) -> bool:
    """
    Query a resource link to confirm cross-account access works end to end.

    Returns:
        bool: True if the query succeeded, False otherwise.
    """
    runner = runner or AthenaQueryRunner()
    sql = f"SELECT COUNT(*) FROM {runner.database}.{link_name(table)} LIMIT 5"
    logger.info(f"Testing query: {sql}")

    try:
        execution_id = runner.start(sql)
        runner.wait(execution_id)
    except (ClientError, QueryExecutionError) as e:
        logger.error(f"Cross-account query failed: {e}")
        return False

    logger.info("Cross-account query succeeded")
    logger.info(f"Check results with: aws athena get-query-results --query-execution-id {execution_id}")
    return True
