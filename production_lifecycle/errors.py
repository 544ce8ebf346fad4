"""
Production Lifecycle: Errors

Policy outcomes (invalid transition, unmet requirement, locked module,
blocked greenlight) are never raised; they come back as structured results.
These exceptions cover configuration and programming errors only.
"""

from typing import Any, Dict, List, Optional


class LifecycleError(Exception):
    """Base lifecycle error with structured details."""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class PolicyError(LifecycleError):
    def __init__(self, message: str, errors: Optional[List[str]] = None, path: Optional[str] = None):
        super().__init__(
            code="POLICY_INVALID",
            message=message,
            details={"errors": errors or [], "path": path}
        )


class UnknownApprovalRoleError(LifecycleError):
    def __init__(self, role: Any, tracked: List[str]):
        name = getattr(role, "value", role)
        super().__init__(
            code="APPROVAL_ROLE_NOT_TRACKED",
            message=f"Approval role '{name}' is not tracked by this gate",
            details={"role": name, "tracked_roles": tracked}
        )
