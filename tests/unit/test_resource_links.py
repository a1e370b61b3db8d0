"""Unit tests for the resource link manager."""

from unittest.mock import Mock, patch

import pytest
from tests.helpers import PRODUCER_ACCOUNT_ID, client_error
from connect_analytics.catalog.resource_links import ResourceLinkManager
from connect_analytics.config import config
from connect_analytics.permissions.lakeformation import LakeFormationPermissions


@pytest.fixture
def manager(glue_client):
    with patch('connect_analytics.catalog.resource_links.get_boto3_client', return_value=glue_client):
        yield ResourceLinkManager(
            producer_catalog_id=PRODUCER_ACCOUNT_ID,
            consumer_database='connect_analytics_consumer',
            producer_database='connect_datalake',
            region='ap-southeast-2'
        )


class TestBuildTableInput:

    def test_table_input_targets_producer_table(self, manager):
        table_input = manager.build_table_input('users')

        assert table_input == {
            'Name': 'users_link',
            'TargetTable': {
                'CatalogId': PRODUCER_ACCOUNT_ID,
                'DatabaseName': 'connect_datalake',
                'Name': 'users'
            },
            'TableType': 'EXTERNAL_TABLE',
            'StorageDescriptor': {'Location': ''}
        }


class TestCreateAndDelete:

    def test_create_link(self, manager, glue_client):
        assert manager.create_link('contacts') is True
        glue_client.create_table.assert_called_once_with(
            DatabaseName='connect_analytics_consumer',
            TableInput=manager.build_table_input('contacts')
        )

    def test_create_link_failure(self, manager, glue_client):
        glue_client.create_table.side_effect = client_error('AccessDeniedException', 'CreateTable')
        assert manager.create_link('contacts') is False

    def test_create_link_already_exists(self, manager, glue_client):
        glue_client.create_table.side_effect = client_error('AlreadyExistsException', 'CreateTable')
        assert manager.create_link('contacts') is True

    def test_delete_missing_link_is_not_an_error(self, manager, glue_client):
        glue_client.delete_table.side_effect = client_error('EntityNotFoundException', 'DeleteTable')
        assert manager.delete_link('users') is True

    def test_delete_link_other_error(self, manager, glue_client):
        glue_client.delete_table.side_effect = client_error('AccessDeniedException', 'DeleteTable')
        assert manager.delete_link('users') is False


class TestRecreateLinks:

    def test_deletes_then_creates_each_link(self, manager, glue_client):
        result = manager.recreate_links(['users', 'contacts'])

        assert result.succeeded == ['users_link', 'contacts_link']
        assert result.failed == []
        assert glue_client.delete_table.call_count == 2
        assert glue_client.create_table.call_count == 2

    def test_failure_does_not_stop_the_loop(self, manager, glue_client):
        glue_client.create_table.side_effect = [
            client_error('InvalidInputException', 'CreateTable'),
            {},
            {},
        ]

        result = manager.recreate_links(['users', 'contacts', 'agent_metrics'])

        assert result.failed == ['users_link']
        assert result.succeeded == ['contacts_link', 'agent_metrics_link']
        assert not result.all_succeeded

    def test_create_runs_even_if_delete_fails(self, manager, glue_client):
        glue_client.delete_table.side_effect = client_error('AccessDeniedException', 'DeleteTable')

        result = manager.recreate_links(['users'])

        glue_client.create_table.assert_called_once()
        assert result.succeeded == ['users_link']


class TestInspection:

    def test_describe_link(self, manager, glue_client, users_link_table):
        glue_client.get_table.return_value = {'Table': users_link_table}

        info = manager.describe_link('users')

        glue_client.get_table.assert_called_once_with(
            DatabaseName='connect_analytics_consumer', Name='users_link'
        )
        assert info['name'] == 'users_link'
        assert info['first_column'] == 'user_id'
        assert info['is_registered_with_lake_formation'] is True
        assert info['target_table']['CatalogId'] == PRODUCER_ACCOUNT_ID

    def test_describe_missing_link(self, manager, glue_client):
        glue_client.get_table.side_effect = client_error('EntityNotFoundException', 'GetTable')
        assert manager.describe_link('users') is None
        assert manager.link_exists('users') is False

    def test_describe_link_without_columns(self, manager, glue_client):
        glue_client.get_table.return_value = {'Table': {'Name': 'users_link', 'StorageDescriptor': {}}}
        assert manager.describe_link('users')['first_column'] is None

    def test_list_links_filters_on_suffix(self, manager, glue_client):
        glue_client.get_paginator.return_value.paginate.return_value = [
            {'TableList': [{'Name': 'users_link'}, {'Name': 'scratch_table'}]},
            {'TableList': [{'Name': 'contacts_link'}]},
        ]

        assert manager.list_links() == ['users_link', 'contacts_link']
        glue_client.get_paginator.assert_called_once_with('get_tables')


class TestConfiguredSuffix:

    @pytest.fixture
    def custom_suffix(self, monkeypatch):
        monkeypatch.setattr(config.catalog, 'link_suffix', '_rl')

    def test_suffix_reaches_glue_and_lake_formation(self, custom_suffix, glue_client):
        with patch('connect_analytics.catalog.resource_links.get_boto3_client', return_value=glue_client):
            manager = ResourceLinkManager(producer_catalog_id=PRODUCER_ACCOUNT_ID)
        lf_client = Mock()
        with patch('connect_analytics.permissions.lakeformation.get_boto3_client', return_value=lf_client):
            permissions = LakeFormationPermissions(
                principal_arn='arn:aws:iam::222222222222:role/connect_analytics_query_role',
                link_manager=manager,
                delay_seconds=0
            )

        manager.create_link('users')
        permissions.grant_describe_on_links(['users'])

        assert glue_client.create_table.call_args.kwargs['TableInput']['Name'] == 'users_rl'
        resource = lf_client.grant_permissions.call_args.kwargs['Resource']
        assert resource['Table']['Name'] == 'users_rl'

    def test_list_links_uses_configured_suffix(self, custom_suffix, glue_client):
        glue_client.get_paginator.return_value.paginate.return_value = [
            {'TableList': [{'Name': 'users_rl'}, {'Name': 'contacts_link'}]},
        ]
        with patch('connect_analytics.catalog.resource_links.get_boto3_client', return_value=glue_client):
            manager = ResourceLinkManager(producer_catalog_id=PRODUCER_ACCOUNT_ID)

        assert manager.list_links() == ['users_rl']
