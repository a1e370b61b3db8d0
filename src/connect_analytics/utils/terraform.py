"""Read-only access to Terraform outputs and state for the deployed stack."""

import json
import subprocess
from typing import Any, List, Optional

from .logger import get_logger

logger = get_logger(__name__)

TERRAFORM_TIMEOUT = 60  # seconds


def _run_terraform(args: List[str], working_dir: str) -> Optional[str]:
    try:
        result = subprocess.run(
            ['terraform', *args],
            cwd=working_dir,
            capture_output=True,
            text=True,
            timeout=TERRAFORM_TIMEOUT
        )
    except FileNotFoundError:
        logger.warning("terraform binary not found in PATH")
        return None
    except subprocess.TimeoutExpired:
        logger.warning(f"terraform {' '.join(args)} timed out after {TERRAFORM_TIMEOUT}s")
        return None

    if result.returncode != 0:
        logger.debug(f"terraform {' '.join(args)} failed: {result.stderr.strip()}")
        return None

    return result.stdout


def terraform_output(name: str, working_dir: str = ".") -> Optional[Any]:
    """
    Read a single Terraform output as parsed JSON.

    Args:
        name: Output name (e.g., 'producer_account_info')
        working_dir: Directory containing the Terraform root module

    Returns:
        Decoded output value, None if unavailable.
    """
    stdout = _run_terraform(['output', '-json', name], working_dir)
    if not stdout:
        return None

    try:
        return json.loads(stdout)
    except json.JSONDecodeError:
        logger.warning(f"Terraform output {name} is not valid JSON")
        return None


def terraform_state_list(working_dir: str = ".") -> List[str]:
    """
    List resource addresses in the Terraform state.

    Returns:
        Resource addresses, empty if state is unavailable.
    """
    stdout = _run_terraform(['state', 'list'], working_dir)
    if not stdout:
        return []
    return [line.strip() for line in stdout.splitlines() if line.strip()]
