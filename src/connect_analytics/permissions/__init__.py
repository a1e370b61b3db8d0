"""Lake Formation permissions."""

from .lakeformation import LakeFormationPermissions, list_principal_permissions
from .prerequisites import check_prerequisites, validate_current_state

__all__ = [
    "LakeFormationPermissions",
    "list_principal_permissions",
    "check_prerequisites",
    "validate_current_state",
]
