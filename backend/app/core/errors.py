"""
Error taxonomy for component/preset operations.

Services raise these; the API layer renders them through a single
exception handler using ``status_code`` and ``to_dict()``.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single problem with one input field"""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class ComposerError(Exception):
    """Base class for all domain errors"""

    code = "error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "detail": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ComposerError):
    """Malformed input or violated invariant; never partially applied"""

    code = "validation_error"
    status_code = 422

    def __init__(self, field_errors: List[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.field_errors = list(field_errors)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.field_errors]

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = [e.to_dict() for e in self.field_errors]
        return payload


class NotFoundError(ComposerError):
    """Absent, or owned by someone else; the two are deliberately indistinguishable"""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ComposerError):
    """Write rejected by a uniqueness or plan-limit rule"""

    code = "conflict"
    status_code = 409


class IntegrityViolation(ComposerError):
    """Inconsistency detected mid-transaction; rolled back, safe to retry"""

    code = "integrity_violation"
    status_code = 409
    retryable = True


class TransportFailure(ComposerError):
    """Persistence unreachable; nothing was committed"""

    code = "transport_failure"
    status_code = 503
    retryable = True
