"""
Error taxonomy for pathway and module operations.

Every failure a caller can observe is a PathwayError subclass carrying a stable
machine-readable ``code`` and the HTTP status the API maps it to. Graph
validation errors are raised before any write happens.
"""

from typing import Optional


class PathwayError(Exception):
    """Base class for all domain errors surfaced to API callers."""

    code = "pathway_error"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class NotFoundError(PathwayError):
    """Referenced pathway or module does not exist."""

    code = "not_found"
    status_code = 404


class NotAuthorizedError(PathwayError):
    """Requester does not own the pathway."""

    code = "not_authorized"
    status_code = 403


class DuplicateKeyOrNameError(PathwayError):
    """A unique value is taken: module key or name, pathway title, account email."""

    code = "duplicate_key_or_name"
    status_code = 409

    def __init__(self, field: str, value: str, message: Optional[str] = None):
        self.value = value
        super().__init__(
            message or f"A module with this {field} ('{value}') already exists in this pathway",
            field=field,
        )


class DuplicateInBatchError(DuplicateKeyOrNameError):
    """Two modules of the same batch share a key or a name."""

    code = "duplicate_in_batch"

    def __init__(self, field: str, value: str):
        super().__init__(field, value, message=f"Duplicate module {field} '{value}' in the batch")


class PrerequisiteNotFoundError(PathwayError):
    """A prerequisite key resolves to no known module."""

    code = "prerequisite_not_found"

    def __init__(self, key: str, module_key: Optional[str] = None):
        self.key = key
        self.module_key = module_key
        super().__init__(
            f"Prerequisite module with key '{key}' not found in this pathway",
            field="prerequisites",
        )


class SelfPrerequisiteError(PathwayError):
    """A module lists itself as a prerequisite."""

    code = "self_prerequisite"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Module '{key}' cannot be its own prerequisite", field="prerequisites")


class CyclicDependencyError(PathwayError):
    """The proposed prerequisite graph contains a cycle."""

    code = "cyclic_dependency"

    def __init__(self, module_key: Optional[str] = None):
        self.module_key = module_key
        message = "Circular dependency detected in prerequisites"
        if module_key:
            message = f"{message} of module '{module_key}'"
        super().__init__(message, field="prerequisites")


class RedundantPrerequisiteError(PathwayError):
    """A direct prerequisite is already implied by a sibling prerequisite."""

    code = "redundant_prerequisite"

    def __init__(self, module_key: str, redundant_key: str, via_key: str):
        self.module_key = module_key
        self.redundant_key = redundant_key
        self.via_key = via_key
        super().__init__(
            f"Redundant prerequisite in module '{module_key}': "
            f"'{redundant_key}' is already an ancestor of '{via_key}'",
            field="prerequisites",
        )


class ImmutableFieldChangeError(PathwayError):
    """Attempt to change a field that is fixed at creation."""

    code = "immutable_field_change"

    def __init__(self, field: str):
        super().__init__(
            f"Module {field}s cannot be updated. Create a new module if you need to change the {field}.",
            field=field,
        )


class TransactionFailureError(PathwayError):
    """The atomic write group failed and was rolled back."""

    code = "transaction_failure"
    status_code = 500


class GenerationError(PathwayError):
    """The generative-content API was unavailable or returned unusable output."""

    code = "generation_failed"
    status_code = 502
