"""Unit tests for deployment verification."""

from unittest.mock import Mock, patch

import pytest
from tests.helpers import PRODUCER_ACCOUNT_ID, client_error
from connect_analytics.config import Config, VerificationConfig
from connect_analytics.verification.deployment import FAIL, PASS, WARN, DeploymentVerifier

MODULE = 'connect_analytics.verification.deployment'
TABLES = ['users', 'contacts', 'agent_metrics', 'queue_metrics']


def resource_link(table, catalog_id=PRODUCER_ACCOUNT_ID):
    return {
        'Name': f'{table}_link',
        'TargetTable': {'CatalogId': catalog_id, 'DatabaseName': 'connect_datalake', 'Name': table}
    }


@pytest.fixture
def link_manager():
    manager = Mock()
    manager.consumer_database = 'connect_analytics_consumer'
    manager.glue_client = Mock()
    manager.link_name.side_effect = lambda table: f'{table}_link'
    manager.list_links.return_value = [f'{t}_link' for t in TABLES]
    manager.get_link.side_effect = resource_link
    return manager


@pytest.fixture
def aws_clients():
    iam = Mock()
    iam.get_role.return_value = {'Role': {'Arn': 'arn:aws:iam::222222222222:role/connect_analytics_query_role'}}
    iam.list_attached_role_policies.return_value = {'AttachedPolicies': [{'PolicyName': 'AthenaAccess'}]}
    athena = Mock()
    lambda_client = Mock()
    lambda_client.get_function.return_value = {'Configuration': {'State': 'Active'}}
    return {'iam': iam, 'athena': athena, 'lambda': lambda_client}


@pytest.fixture
def terraform_dir(tmp_path):
    for name in ('terraform.tfstate', 'resource_links.tf', 'lambda.tf', 'DEPLOYMENT_GUIDE.md'):
        (tmp_path / name).write_text('')
    return tmp_path


@pytest.fixture
def terraform_outputs():
    return {
        'consumer_account_setup': {'athena_results_bucket': 'connect-analytics-athena-results'},
        'resource_links_native': {'no_scripts': True, 'method': 'Native Terraform (aws_glue_catalog_table)'},
        'lambda_info': {'function_name': 'connect-analytics-users-export'},
    }


@pytest.fixture
def verifier(link_manager, aws_clients, terraform_dir, terraform_outputs):
    cfg = Config(verification=VerificationConfig(expected_link_count=4, terraform_dir=str(terraform_dir)))
    state = [f'aws_glue_catalog_table.resource_links["{t}"]' for t in TABLES]

    with patch(f'{MODULE}.get_boto3_client', side_effect=lambda service, region=None: aws_clients[service]), \
            patch(f'{MODULE}.terraform_state_list', return_value=state), \
            patch(f'{MODULE}.terraform_output', side_effect=lambda name, wd=None: terraform_outputs.get(name)), \
            patch(f'{MODULE}.check_s3_bucket_exists', return_value=True), \
            patch(f'{MODULE}.list_principal_permissions', return_value=[{'Permissions': ['SELECT']}]):
        yield DeploymentVerifier(
            producer_account_id=PRODUCER_ACCOUNT_ID,
            cfg=cfg,
            tables=TABLES,
            link_manager=link_manager
        )


def statuses(verifier, name=None):
    return [r.status for r in verifier.summary.results if name is None or r.name == name]


class TestFullRun:

    def test_healthy_deployment_passes(self, verifier):
        summary = verifier.run()

        assert summary.failed == 0
        assert summary.warnings == 0
        assert summary.succeeded
        assert verifier.failed_checks() == []

    def test_sections_run_in_order(self, verifier):
        verifier.run()
        sections = []
        for result in verifier.summary.results:
            if result.section not in sections:
                sections.append(result.section)
        assert [s.split('.')[0] for s in sections] == [str(i) for i in range(1, 11)]


class TestGlueChecks:

    def test_wrong_link_count_fails(self, verifier, link_manager):
        link_manager.list_links.return_value = ['users_link']
        verifier.check_glue_resources()
        assert statuses(verifier, 'link_count') == [FAIL]

    def test_link_without_target_fails(self, verifier, link_manager):
        link_manager.get_link.side_effect = lambda t: {'Name': f'{t}_link'} if t == 'users' else resource_link(t)
        verifier.check_glue_resources()
        assert statuses(verifier, 'users_link') == [FAIL]

    def test_missing_database_fails(self, verifier, link_manager):
        link_manager.glue_client.get_database.side_effect = client_error('EntityNotFoundException', 'GetDatabase')
        verifier.check_glue_resources()
        assert statuses(verifier, 'consumer_database') == [FAIL]


class TestCrossAccountTargets:

    def test_wrong_catalog_fails(self, verifier, link_manager):
        link_manager.get_link.side_effect = lambda t: resource_link(t, catalog_id='999999999999')
        verifier.check_cross_account_targets()
        assert statuses(verifier) == [FAIL] * 4

    def test_missing_link_fails(self, verifier, link_manager):
        link_manager.get_link.side_effect = lambda t: None
        verifier.check_cross_account_targets()
        assert verifier.summary.failed == 4


class TestIAMAndLakeFormation:

    def test_missing_role_skips_lake_formation(self, verifier, aws_clients):
        aws_clients['iam'].get_role.side_effect = client_error('NoSuchEntity', 'GetRole')

        verifier.check_iam_resources()
        verifier.check_lake_formation()

        assert statuses(verifier, 'iam_role') == [FAIL]
        assert statuses(verifier, 'lf_permissions') == [WARN]

    def test_no_policies_warns(self, verifier, aws_clients):
        aws_clients['iam'].list_attached_role_policies.return_value = {'AttachedPolicies': []}
        verifier.check_iam_resources()
        assert statuses(verifier, 'iam_policies') == [WARN]


class TestTerraformChecks:

    def test_missing_state_file_fails(self, verifier, terraform_dir):
        (terraform_dir / 'terraform.tfstate').unlink()
        verifier.check_terraform_state()
        assert statuses(verifier, 'state_file') == [FAIL]

    def test_legacy_state_resources_warn(self, verifier):
        with patch(f'{MODULE}.terraform_state_list', return_value=['null_resource.setup_links']):
            verifier.check_terraform_state()
        assert statuses(verifier, 'state_legacy') == [WARN]
        assert statuses(verifier, 'state_links') == [FAIL]

    def test_scripts_in_use_fails(self, verifier, terraform_outputs):
        terraform_outputs['resource_links_native'] = {'no_scripts': False, 'method': 'Script'}
        verifier.check_terraform_outputs()
        assert statuses(verifier, 'no_scripts') == [FAIL]
        assert statuses(verifier, 'method') == [WARN]

    def test_missing_outputs_warn(self, verifier, terraform_outputs):
        terraform_outputs.clear()

        verifier.check_terraform_outputs()
        verifier.check_lambda_function()

        assert statuses(verifier) == [WARN, WARN]

    def test_legacy_files_warn_and_missing_files_fail(self, verifier, terraform_dir):
        (terraform_dir / 'setup_resource_links.sh').write_text('')
        (terraform_dir / 'lambda.tf').unlink()

        verifier.check_files()

        assert statuses(verifier, 'legacy_file') == [WARN]
        assert statuses(verifier, 'expected_file') == [FAIL]


class TestServiceChecks:

    def test_missing_workgroup_warns(self, verifier, aws_clients):
        aws_clients['athena'].get_work_group.side_effect = client_error('InvalidRequestException', 'GetWorkGroup')
        verifier.check_athena_resources()
        assert statuses(verifier, 'athena_workgroup') == [WARN]

    def test_inactive_lambda_fails(self, verifier, aws_clients):
        aws_clients['lambda'].get_function.return_value = {'Configuration': {'State': 'Pending'}}
        verifier.check_lambda_function()
        assert statuses(verifier, 'lambda') == [FAIL]

    def test_missing_lambda_fails(self, verifier, aws_clients):
        aws_clients['lambda'].get_function.side_effect = client_error('ResourceNotFoundException', 'GetFunction')
        verifier.check_lambda_function()
        assert verifier.summary.results[-1].message.endswith('status: NotFound')

    def test_inaccessible_bucket_fails(self, verifier):
        with patch(f'{MODULE}.check_s3_bucket_exists', return_value=False):
            verifier.check_s3_resources()
        assert statuses(verifier, 'athena_bucket') == [FAIL]

    def test_healthy_bucket_passes(self, verifier):
        verifier.check_s3_resources()
        assert statuses(verifier, 'athena_bucket') == [PASS]
