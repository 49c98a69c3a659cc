"""Shared error code constants.

Codes are stable machine-readable identifiers. Store and step specific codes
sit next to the generic ones so counters and logs never drift apart.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

# Not found
NOT_FOUND = "NOT_FOUND"
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
CIRCUIT_OPEN = "CIRCUIT_OPEN"

# Best-effort pipeline steps
REDACTION_FAILED = "REDACTION_FAILED"
OVERFLOW_BLOB_UNAVAILABLE = "OVERFLOW_BLOB_UNAVAILABLE"
OVERFLOW_BLOB_WRITE_FAILED = "OVERFLOW_BLOB_WRITE_FAILED"
BOOKKEEPING_FAILED = "BOOKKEEPING_FAILED"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
