"""Error types raised while resolving and applying scaling rules.

Every error carries a ``code`` from :class:`ErrorCode` and an optional ``meta``
payload, so callers can branch on the kind of failure instead of parsing
messages. Wrapped causes are attached with ``raise ... from err``.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Kinds of failures surfaced by the scale command"""
    USAGE = "usage"                              # Bad argument count or shape
    VALIDATION = "validation"                    # Well-formed but not acceptable
    NOT_FOUND = "not_found"                      # Deployment identifier did not resolve
    REMOTE = "remote"                            # Any other control plane failure
    INVALID_REGION_ID = "invalid_region_id"      # Unknown region or DC identifier
    INVALID_REGION_ALL = "invalid_region_all"    # "all" mixed with other identifiers
    VERIFY_TIMEOUT = "verify_timeout"            # Instance counts never met the rules


class ScaleError(Exception):
    """Base class for all errors of the scale command"""

    default_code = ErrorCode.USAGE

    def __init__(self, message: str, code: Optional[ErrorCode] = None,
                 meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.meta = meta or {}

    def __str__(self) -> str:
        return self.message


class UsageError(ScaleError):
    """Arguments have the wrong count or shape. Raised before any I/O."""
    default_code = ErrorCode.USAGE


class ValidationError(ScaleError):
    """Arguments are well-formed but refer to something that cannot be scaled."""
    default_code = ErrorCode.VALIDATION


class NotFoundError(ScaleError):
    """The deployment identifier did not resolve."""
    default_code = ErrorCode.NOT_FOUND


class RemoteError(ScaleError):
    """Any other failure reported by the control plane or the transport."""
    default_code = ErrorCode.REMOTE

    def __init__(self, message: str, status: Optional[int] = None,
                 server_code: Optional[str] = None,
                 meta: Optional[Dict[str, Any]] = None):
        super().__init__(message, meta=meta)
        self.status = status
        self.server_code = server_code


class InvalidRegionError(ScaleError):
    """A region token is neither a known region nor a known DC."""
    default_code = ErrorCode.INVALID_REGION_ID

    def __init__(self, region_id: str):
        super().__init__(
            f'The value "{region_id}" is not a valid region or DC identifier',
            meta={"id": region_id}
        )
        self.region_id = region_id


class AllRegionsConflictError(ScaleError):
    """The ``all`` keyword was combined with explicit identifiers."""
    default_code = ErrorCode.INVALID_REGION_ALL

    def __init__(self, regions):
        super().__init__(
            'The region value "all" was used, but it cannot be used alongside '
            'other region or dc identifiers',
            meta={"regions": list(regions)}
        )


class VerificationTimeoutError(ScaleError):
    """Running instances did not reach the requested bounds in time."""
    default_code = ErrorCode.VERIFY_TIMEOUT
