"""
Lambda function exporting a shared Amazon Connect table to S3.

Runs on an EventBridge schedule in the consumer account. It:
- Runs one Athena query against a resource link (users_link by default)
- Polls the query every 2 seconds while the invocation has time left
- Writes the result set as CSV to the export bucket

Only boto3 and the standard library are used so the file can be deployed
on its own.
"""

import csv
import io
import json
import logging
import os
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

# Configure structured logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

POLL_INTERVAL_SECONDS = 2
# Stop polling when less than this much invocation time is left
TIME_MARGIN_MS = 15000
DEFAULT_TIMEOUT_SECONDS = 280

_IDENTIFIER = re.compile(r'^[A-Za-z0-9_]+$')

_clients: Dict[str, Any] = {}


def _client(service: str) -> Any:
    if service not in _clients:
        _clients[service] = boto3.client(service)
    return _clients[service]


def load_settings(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read settings from environment variables, with per-event overrides.

    Args:
        event: Invocation event; may carry 'table' and 'prefix'

    Returns:
        Settings dictionary

    Raises:
        ValueError: If a required setting is missing or invalid
    """
    settings = {
        'database': os.environ.get('ATHENA_DATABASE', 'connect_analytics_consumer'),
        'workgroup': os.environ.get('ATHENA_WORKGROUP', 'connect_analytics_workgroup'),
        'output_location': os.environ.get('ATHENA_OUTPUT_LOCATION', ''),
        'bucket': os.environ.get('EXPORT_BUCKET', ''),
        'prefix': (event or {}).get('prefix') or os.environ.get('EXPORT_PREFIX', 'exports'),
        'table': (event or {}).get('table') or os.environ.get('SOURCE_TABLE', 'users_link'),
    }

    if not settings['bucket']:
        raise ValueError("EXPORT_BUCKET environment variable is not set")

    for key in ('database', 'table'):
        if not _IDENTIFIER.match(settings[key]):
            raise ValueError(f"Invalid {key} name: {settings[key]!r}")

    settings['prefix'] = settings['prefix'].strip('/')
    return settings


def start_query(settings: Dict[str, Any]) -> str:
    """Start the export query and return its execution ID."""
    query = f'SELECT * FROM "{settings["database"]}"."{settings["table"]}"'
    params = {
        'QueryString': query,
        'QueryExecutionContext': {'Database': settings['database']},
        'WorkGroup': settings['workgroup'],
    }
    if settings['output_location']:
        params['ResultConfiguration'] = {'OutputLocation': settings['output_location']}

    logger.info(f"Starting Athena query: {query}")
    response = _client('athena').start_query_execution(**params)
    return response['QueryExecutionId']


def wait_for_query(execution_id: str, context: Any) -> None:
    """
    Poll the query until it succeeds.

    Raises:
        RuntimeError: If the query fails, is cancelled or runs out of time
    """
    started = time.monotonic()

    while True:
        response = _client('athena').get_query_execution(QueryExecutionId=execution_id)
        status = response['QueryExecution']['Status']
        state = status['State']

        if state == 'SUCCEEDED':
            logger.info(f"Query {execution_id} succeeded")
            return
        if state in ('FAILED', 'CANCELLED'):
            reason = status.get('StateChangeReason', 'Unknown error')
            raise RuntimeError(f"Query {execution_id} {state}: {reason}")

        if context is not None and hasattr(context, 'get_remaining_time_in_millis'):
            out_of_time = context.get_remaining_time_in_millis() < TIME_MARGIN_MS
        else:
            out_of_time = time.monotonic() - started > DEFAULT_TIMEOUT_SECONDS
        if out_of_time:
            raise RuntimeError(f"Query {execution_id} still {state}, out of time")

        time.sleep(POLL_INTERVAL_SECONDS)


def fetch_results(execution_id: str) -> List[List[Optional[str]]]:
    """
    Read all result rows, header row first.
    """
    rows = []
    paginator = _client('athena').get_paginator('get_query_results')
    for page in paginator.paginate(QueryExecutionId=execution_id):
        for row in page['ResultSet']['Rows']:
            rows.append([datum.get('VarCharValue') for datum in row.get('Data', [])])
    return rows


def rows_to_csv(rows: List[List[Optional[str]]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
    for row in rows:
        writer.writerow(['' if value is None else value for value in row])
    return buffer.getvalue()


def build_export_key(prefix: str, table: str, now: Optional[datetime] = None) -> str:
    """Build the S3 key: <prefix>/<table>/<table>_<YYYYmmdd_HHMMSS>.csv"""
    now = now or datetime.now(timezone.utc)
    name = table[:-len('_link')] if table.endswith('_link') else table
    filename = f"{name}_{now.strftime('%Y%m%d_%H%M%S')}.csv"
    return f"{prefix}/{name}/{filename}" if prefix else f"{name}/{filename}"


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for the scheduled table export.

    Args:
        event: EventBridge scheduled event, or a manual payload such as
            {"table": "contacts_link"}
        context: Lambda context object with runtime information

    Returns:
        Response dictionary with statusCode and export results
    """
    request_id = getattr(context, 'aws_request_id', None)
    logger.info(f"Export invoked (request_id={request_id}) with event: {json.dumps(event or {}, default=str)}")

    try:
        settings = load_settings(event)

        execution_id = start_query(settings)
        wait_for_query(execution_id, context)
        rows = fetch_results(execution_id)

        key = build_export_key(settings['prefix'], settings['table'])
        _client('s3').put_object(
            Bucket=settings['bucket'],
            Key=key,
            Body=rows_to_csv(rows).encode('utf-8'),
            ContentType='text/csv'
        )

        row_count = max(len(rows) - 1, 0)
        s3_uri = f"s3://{settings['bucket']}/{key}"
        logger.info(f"Exported {row_count} rows from {settings['table']} to {s3_uri}")

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Export completed successfully',
                'table': settings['table'],
                'row_count': row_count,
                's3_uri': s3_uri,
                'query_execution_id': execution_id
            })
        }

    except (ClientError, RuntimeError, ValueError) as e:
        logger.error(f"Export failed: {str(e)}", exc_info=True)
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Export failed',
                'error': str(e)
            })
        }
