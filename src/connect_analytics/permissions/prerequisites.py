"""Pre-flight checks before changing Lake Formation permissions."""

from typing import Dict, Optional

from ..catalog.resource_links import ResourceLinkManager
from ..utils.aws_helpers import check_iam_role_exists, get_account_id
from ..utils.logger import get_logger
from .lakeformation import LakeFormationPermissions

logger = get_logger(__name__)


def check_prerequisites(
    lambda_role_name: str,
    consumer_account_id: str,
    region: Optional[str] = None
) -> bool:
    """
    Check the caller account and that the Lambda role exists.

    A caller outside the consumer account only produces a warning.

    Returns:
        bool: True if the role exists, False otherwise.
    """
    logger.info("Checking prerequisites...")

    current_account = get_account_id(region)
    if current_account != consumer_account_id:
        logger.warning(
            f"Current account ({current_account}) is not the consumer account ({consumer_account_id})"
        )
        logger.warning("Some operations may fail due to cross-account restrictions")

    if check_iam_role_exists(lambda_role_name) is None:
        logger.error(f"Lambda role not found: {lambda_role_name}")
        return False

    logger.info("Prerequisites check passed")
    return True


def validate_current_state(
    link_manager: ResourceLinkManager,
    permissions: LakeFormationPermissions,
    test_mode: bool = False,
    sample_table: str = "users"
) -> Dict:
    """
    Report the caller identity, existing links and, in test mode, the
    permissions currently held on a sample link.

    Returns:
        Dictionary with 'account_id', 'links' and 'sample_permissions'.
    """
    logger.info("=== Validating Current Permissions ===")

    state = {
        'account_id': get_account_id(link_manager.region),
        'links': link_manager.list_links(),
        'sample_permissions': None
    }
    logger.info(f"Current AWS Identity: {state['account_id']}")
    logger.info(f"Resource Links in Consumer Account: {', '.join(state['links']) or 'none'}")

    if test_mode and link_manager.link_exists(sample_table):
        state['sample_permissions'] = permissions.list_link_permissions(sample_table)
        logger.info(
            f"Permissions on {link_manager.link_name(sample_table)}: "
            f"{', '.join(state['sample_permissions']) or 'No permissions found'}"
        )

    return state
