"""Pytest configuration and fixtures."""

from unittest.mock import Mock

import pytest
from tests.helpers import CONSUMER_ACCOUNT_ID, PRODUCER_ACCOUNT_ID


@pytest.fixture(autouse=True)
def mock_aws_credentials(monkeypatch):
    """Mock AWS credentials for testing."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'ap-southeast-2')


@pytest.fixture
def glue_client():
    """Mock Glue client with an empty paginator."""
    client = Mock()
    paginator = Mock()
    paginator.paginate.return_value = [{'TableList': []}]
    client.get_paginator.return_value = paginator
    return client


@pytest.fixture
def users_link_table():
    """Glue get_table response body for users_link after schema population."""
    return {
        'Name': 'users_link',
        'DatabaseName': 'connect_analytics_consumer',
        'TableType': 'EXTERNAL_TABLE',
        'IsRegisteredWithLakeFormation': True,
        'TargetTable': {
            'CatalogId': PRODUCER_ACCOUNT_ID,
            'DatabaseName': 'connect_datalake',
            'Name': 'users'
        },
        'StorageDescriptor': {
            'Location': 's3://producer-connect-datalake/users/',
            'Columns': [
                {'Name': 'user_id', 'Type': 'string', 'Comment': 'Agent identifier'},
                {'Name': 'username', 'Type': 'string'},
                {'Name': 'routing_profile_id', 'Type': 'string'},
            ]
        },
        'PartitionKeys': [
            {'Name': 'instance_id', 'Type': 'string'},
        ]
    }


@pytest.fixture
def mock_context():
    """Mock Lambda context object."""
    context = Mock()
    context.aws_request_id = 'test-request-id-12345'
    context.function_name = 'connect-analytics-users-export'
    context.invoked_function_arn = (
        f'arn:aws:lambda:ap-southeast-2:{CONSUMER_ACCOUNT_ID}:function:connect-analytics-users-export'
    )
    context.memory_limit_in_mb = 256
    context.get_remaining_time_in_millis.return_value = 300000
    return context
