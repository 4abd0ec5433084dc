"""
Error taxonomy for lisa.

Context assembly and commands raise LisaError with a machine-readable code.
Callers convert it into a user-facing message; validation results never
raise it for data-quality problems.
"""

NOT_INITIALIZED = "NOT_INITIALIZED"
NOT_FOUND = "NOT_FOUND"
INVALID_ID = "INVALID_ID"
MISSING_PRD = "MISSING_PRD"
MISSING_ARCH = "MISSING_ARCH"
ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
NO_DISCOVERY = "NO_DISCOVERY"
NO_MILESTONES = "NO_MILESTONES"


class LisaError(Exception):
    """Expected-path failure with a code identifying the unmet precondition."""

    def __init__(self, message: str, code: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0] if self.args else self.code
