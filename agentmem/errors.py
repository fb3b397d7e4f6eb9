"""
Shared error types for core services.
"""


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class ProviderUnavailableError(RuntimeError):
    """Raised when a provider result is unwrapped after a failed call."""

    def __init__(self, kind: str, detail: str | None = None):
        super().__init__(f"provider unavailable ({kind})")
        self.kind = kind
        self.detail = detail


class MemoryNotFoundError(LookupError):
    """Raised when a memory is missing from the caller's agent/owner scope."""

    def __init__(self, memory_id: int):
        super().__init__(f"Memory {memory_id} not found")
        self.memory_id = memory_id


class ApiKeyRequiredError(PermissionError):
    """Raised when a provider-backed operation is requested without a credential."""

    def __init__(self, message: str = "An API key is required for this operation"):
        super().__init__(message)
