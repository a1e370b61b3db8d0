"""
Post-deployment smoke checks for the consumer account.

Checks Terraform state and outputs, the Glue resource links, IAM, Lake
Formation, S3, Athena and the export Lambda. Each check is recorded as
PASS, FAIL or WARN; only FAIL makes the verification unsuccessful.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from botocore.exceptions import ClientError

from ..catalog.resource_links import ResourceLinkManager
from ..config import Config, config as default_config
from ..permissions.lakeformation import list_principal_permissions
from ..tables import VERIFY_TABLES
from ..utils.aws_helpers import check_s3_bucket_exists, error_code, get_boto3_client
from ..utils.logger import get_logger
from ..utils.terraform import terraform_output, terraform_state_list

logger = get_logger(__name__)

PASS = "PASS"
FAIL = "FAIL"
WARN = "WARN"

LEGACY_FILES = ("resource_links_fallback.tf", "setup_resource_links.sh")
EXPECTED_FILES = ("resource_links.tf", "lambda.tf", "DEPLOYMENT_GUIDE.md")


class Colors:
    """ANSI color codes for terminal output"""
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


@dataclass
class CheckResult:
    section: str
    name: str
    status: str
    message: str = ""


@dataclass
class VerificationSummary:
    results: List[CheckResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def passed(self) -> int:
        return self.count(PASS)

    @property
    def failed(self) -> int:
        return self.count(FAIL)

    @property
    def warnings(self) -> int:
        return self.count(WARN)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0


class DeploymentVerifier:
    """Runs the deployment smoke checks against a live consumer account."""

    def __init__(
        self,
        producer_account_id: str,
        cfg: Optional[Config] = None,
        tables: Sequence[str] = VERIFY_TABLES,
        terraform_dir: Optional[str] = None,
        link_manager: Optional[ResourceLinkManager] = None
    ):
        """
        Initialize the verifier.

        Args:
            producer_account_id: Account every resource link must target.
            cfg: Configuration; defaults to the global config.
            tables: Tables whose resource links are checked individually.
            terraform_dir: Directory of the Terraform root module.
            link_manager: Resource link manager for the consumer database.
        """
        self.cfg = cfg or default_config
        self.producer_account_id = producer_account_id
        self.tables = list(tables)
        self.terraform_dir = terraform_dir or self.cfg.verification.terraform_dir
        self.region = self.cfg.aws.region
        self.link_manager = link_manager or ResourceLinkManager(
            producer_catalog_id=producer_account_id,
            consumer_database=self.cfg.catalog.consumer_database,
            region=self.region
        )
        self.glue_client = self.link_manager.glue_client
        self.iam_client = get_boto3_client('iam', region=self.region)
        self.athena_client = get_boto3_client('athena', region=self.region)
        self.lambda_client = get_boto3_client('lambda', region=self.region)

        self.summary = VerificationSummary()
        self._section = ""
        self._role_arn: Optional[str] = None

    def print_header(self, text: str):
        """Print a formatted section header"""
        self._section = text
        print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 40}{Colors.RESET}")
        print(f"{Colors.BOLD}{Colors.BLUE}{text}{Colors.RESET}")
        print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 40}{Colors.RESET}\n")

    def record(self, name: str, status: str, message: str = "") -> CheckResult:
        """Record and print a check result with color coding"""
        color, label = {
            PASS: (Colors.GREEN, "✓ PASS"),
            FAIL: (Colors.RED, "✗ FAIL"),
            WARN: (Colors.YELLOW, "⚠ WARNING"),
        }[status]
        print(f"{color}{label}:{Colors.RESET} {message or name}")

        result = CheckResult(self._section, name, status, message)
        self.summary.results.append(result)
        return result

    def _tf_path(self, name: str) -> Path:
        return Path(self.terraform_dir) / name

    # 1. Terraform state
    def check_terraform_state(self):
        self.print_header("1. Terraform State Verification")

        if self._tf_path("terraform.tfstate").exists():
            self.record("state_file", PASS, "Terraform state file exists")
        else:
            self.record("state_file", FAIL, "Terraform state file not found")

        state = terraform_state_list(self.terraform_dir)
        expected = self.cfg.verification.expected_link_count
        link_count = sum(1 for address in state if "aws_glue_catalog_table.resource_links" in address)
        if link_count == expected:
            self.record("state_links", PASS, f"All {expected} Resource Links found in Terraform state")
        else:
            self.record("state_links", FAIL, f"Expected {expected} Resource Links in state, found {link_count}")

        legacy = [
            address for address in state
            if address.startswith("null_resource") or
            (address.startswith("local_file") and "resource_link" in address)
        ]
        if legacy:
            self.record("state_legacy", WARN, f"Found old script-based resources in state: {', '.join(legacy)}")
        else:
            self.record("state_legacy", PASS, "No old script-based resources in state")

    # 2. Glue
    def check_glue_resources(self):
        self.print_header("2. AWS Glue Resources Verification")
        database = self.link_manager.consumer_database

        try:
            self.glue_client.get_database(Name=database)
            self.record("consumer_database", PASS, f"Consumer database '{database}' exists")
        except ClientError:
            self.record("consumer_database", FAIL, f"Consumer database '{database}' not found")

        links = self.link_manager.list_links()
        expected = self.cfg.verification.expected_link_count
        if len(links) == expected:
            self.record("link_count", PASS, f"All {expected} Resource Links exist in AWS Glue")
            logger.info(f"Resource Links: {' '.join(links)}")
        else:
            self.record("link_count", FAIL, f"Expected {expected} Resource Links, found {len(links)}")

        for table in self.tables:
            name = self.link_manager.link_name(table)
            link = self.link_manager.get_link(table)
            if link is None:
                self.record(name, FAIL, f"{name} not found")
            elif link.get('TargetTable'):
                self.record(name, PASS, f"{name} exists and is a valid Resource Link")
            else:
                self.record(name, FAIL, f"{name} exists but is not a Resource Link")

    # 3. IAM
    def check_iam_resources(self):
        self.print_header("3. IAM Resources Verification")
        role_name = self.cfg.verification.query_role_name

        try:
            response = self.iam_client.get_role(RoleName=role_name)
            self._role_arn = response['Role']['Arn']
            self.record("iam_role", PASS, f"IAM role '{role_name}' exists")
            logger.info(f"Role ARN: {self._role_arn}")
        except ClientError:
            self._role_arn = None
            self.record("iam_role", FAIL, f"IAM role '{role_name}' not found")
            return

        try:
            response = self.iam_client.list_attached_role_policies(RoleName=role_name)
            policy_count = len(response.get('AttachedPolicies', []))
        except ClientError:
            policy_count = 0

        if policy_count > 0:
            self.record("iam_policies", PASS, f"IAM role has {policy_count} attached policies")
        else:
            self.record("iam_policies", WARN, "IAM role has no attached policies")

    # 4. Lake Formation
    def check_lake_formation(self):
        self.print_header("4. Lake Formation Permissions Verification")

        if not self._role_arn:
            self.record("lf_permissions", WARN, "Skipping Lake Formation check (IAM role not found)")
            return

        entries = list_principal_permissions(self._role_arn, region=self.region)
        if entries:
            self.record("lf_permissions", PASS, "Lake Formation permissions found for IAM role")
            logger.info(f"Permission entries: {len(entries)}")
        else:
            self.record(
                "lf_permissions", WARN,
                "No Lake Formation permissions found (may need manual configuration)"
            )

    # 5. S3
    def check_s3_resources(self):
        self.print_header("5. S3 Resources Verification")

        setup = terraform_output("consumer_account_setup", self.terraform_dir)
        bucket = setup.get('athena_results_bucket') if isinstance(setup, dict) else None
        bucket = bucket or self.cfg.athena.results_bucket

        if not bucket:
            self.record("athena_bucket", WARN, "Could not determine Athena results bucket name")
        elif check_s3_bucket_exists(bucket, region=self.region):
            self.record("athena_bucket", PASS, f"Athena results bucket exists: {bucket}")
        else:
            self.record("athena_bucket", FAIL, f"Athena results bucket not accessible: {bucket}")

    # 6. Athena
    def check_athena_resources(self):
        self.print_header("6. Athena Resources Verification")
        workgroup = self.cfg.athena.workgroup

        try:
            self.athena_client.get_work_group(WorkGroup=workgroup)
            self.record("athena_workgroup", PASS, f"Athena workgroup '{workgroup}' exists")
        except ClientError:
            self.record("athena_workgroup", WARN, f"Athena workgroup '{workgroup}' not found (may have different name)")

    # 7. Terraform outputs
    def check_terraform_outputs(self):
        self.print_header("7. Terraform Outputs Verification")

        native = terraform_output("resource_links_native", self.terraform_dir)
        if not isinstance(native, dict):
            self.record("native_output", WARN, "Could not retrieve resource_links_native output")
            return

        if native.get('no_scripts') is True or str(native.get('no_scripts')).lower() == "true":
            self.record("no_scripts", PASS, "Terraform output confirms no scripts used")
        else:
            self.record("no_scripts", FAIL, "Terraform output indicates scripts may be in use")

        method = str(native.get('method', ''))
        if "Native Terraform" in method:
            self.record("method", PASS, f"Deployment method: {method}")
        else:
            self.record("method", WARN, f"Unexpected deployment method: {method}")

    # 8. Files
    def check_files(self):
        self.print_header("8. File System Verification")

        old_files = [name for name in LEGACY_FILES if self._tf_path(name).exists()]
        for name in old_files:
            self.record("legacy_file", WARN, f"Old file still exists: {name}")
        if not old_files:
            self.record("legacy_files", PASS, "No old script-based files found")

        missing = [name for name in EXPECTED_FILES if not self._tf_path(name).exists()]
        for name in missing:
            self.record("expected_file", FAIL, f"Expected file not found: {name}")
        if not missing:
            self.record("expected_files", PASS, "All new Terraform files present")

    # 9. Cross-account targets
    def check_cross_account_targets(self):
        self.print_header("9. Cross-Account Configuration Verification")

        for table in self.tables:
            name = self.link_manager.link_name(table)
            link = self.link_manager.get_link(table)
            target = (link or {}).get('TargetTable', {}).get('CatalogId', "None")

            if target == self.producer_account_id:
                self.record(name, PASS, f"{name} points to producer account {self.producer_account_id}")
            else:
                self.record(
                    name, FAIL,
                    f"{name} has incorrect target: {target} (expected {self.producer_account_id})"
                )

    # 10. Lambda
    def check_lambda_function(self):
        self.print_header("10. Lambda Function Verification")

        info = terraform_output("lambda_info", self.terraform_dir)
        function_name = info.get('function_name') if isinstance(info, dict) else None
        if not function_name:
            self.record("lambda", WARN, "Lambda function name not found in Terraform outputs")
            return

        try:
            response = self.lambda_client.get_function(FunctionName=function_name)
            state = response['Configuration'].get('State', 'Unknown')
        except ClientError as e:
            state = 'NotFound' if error_code(e) == 'ResourceNotFoundException' else f"Error ({error_code(e)})"

        if state == 'Active':
            self.record("lambda", PASS, f"Lambda function '{function_name}' is active")
        else:
            self.record("lambda", FAIL, f"Lambda function '{function_name}' status: {state}")

    def run(self) -> VerificationSummary:
        """Run all checks in order and print the summary."""
        self.check_terraform_state()
        self.check_glue_resources()
        self.check_iam_resources()
        self.check_lake_formation()
        self.check_s3_resources()
        self.check_athena_resources()
        self.check_terraform_outputs()
        self.check_files()
        self.check_cross_account_targets()
        self.check_lambda_function()

        self.print_summary()
        return self.summary

    def print_summary(self):
        """Print summary of all checks"""
        self.print_header("Verification Summary")
        summary = self.summary

        print(f"{Colors.GREEN}Passed:{Colors.RESET}   {summary.passed}")
        print(f"{Colors.RED}Failed:{Colors.RESET}   {summary.failed}")
        print(f"{Colors.YELLOW}Warnings:{Colors.RESET} {summary.warnings}")
        print(f"Total:    {len(summary.results)}\n")

        if summary.succeeded:
            print(f"{Colors.GREEN}✓ All critical tests passed!{Colors.RESET}")
        else:
            print(f"{Colors.RED}✗ Some tests failed. Please review the output above.{Colors.RESET}")

    def failed_checks(self) -> List[Dict[str, str]]:
        return [
            {'section': r.section, 'name': r.name, 'message': r.message}
            for r in self.summary.results if r.status == FAIL
        ]
