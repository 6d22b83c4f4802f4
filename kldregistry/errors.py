"""
kld-registry error taxonomy.

Every failure raised by the registration flow derives from RegistryError
and carries a stable ErrorCode. Nothing is retried: an error is terminal
for the registration attempt that raised it.
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorCode(str, Enum):
    """Stable error codes surfaced to callers and logs."""
    IO_ERROR = "IO_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    UNSUPPORTED_CURVE = "UNSUPPORTED_CURVE"
    INVALID_PROOF_FORMAT = "INVALID_PROOF_FORMAT"
    NAME_MISMATCH = "NAME_MISMATCH"
    NONCE_FETCH_ERROR = "NONCE_FETCH_ERROR"
    SIGNING_ERROR = "SIGNING_ERROR"
    SUBMISSION_ERROR = "SUBMISSION_ERROR"
    SERVICE_DEFINITION_ERROR = "SERVICE_DEFINITION_ERROR"
    UNKNOWN = "UNKNOWN"


class RegistryError(Exception):
    """Base class for registration failures."""
    code = ErrorCode.UNKNOWN

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FileReadError(RegistryError):
    """Raised when a key or certificate file cannot be read."""
    code = ErrorCode.IO_ERROR

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"could not read {path}: {reason}")


class ParseError(RegistryError):
    """Raised on malformed PEM, DER or X.509 input."""
    code = ErrorCode.PARSE_ERROR


class AuthError(RegistryError):
    """Raised when an encrypted key cannot be opened with the passphrase."""
    code = ErrorCode.AUTH_ERROR


class UnsupportedKeyType(RegistryError):
    """Raised when the decoded private key is not an elliptic-curve key."""
    code = ErrorCode.UNSUPPORTED_KEY_TYPE

    def __init__(self, key_type: str):
        self.key_type = key_type
        super().__init__(f"signing key must be an elliptic-curve key, got {key_type}")


class UnsupportedCurve(RegistryError):
    """Raised when no JWS algorithm exists for the key's curve."""
    code = ErrorCode.UNSUPPORTED_CURVE

    def __init__(self, bit_size: int, curve_name: Optional[str] = None):
        self.bit_size = bit_size
        self.curve_name = curve_name
        label = f"{curve_name} ({bit_size} bits)" if curve_name else f"{bit_size} bits"
        super().__init__(
            f"unsupported signing curve {label}: expected P-256, P-384 or P-521"
        )


class InvalidProofFormat(RegistryError):
    """Raised when the certificate common name does not carry four tokens."""
    code = ErrorCode.INVALID_PROOF_FORMAT

    def __init__(self, common_name: str, expected_format: str):
        self.common_name = common_name
        self.expected_format = expected_format
        super().__init__(
            f"common name '{common_name}' does not follow the format of {expected_format}"
        )


class NameMismatch(RegistryError):
    """Raised when the requested name does not match the proof."""
    code = ErrorCode.NAME_MISMATCH

    def __init__(self, name: str, required: Sequence[str], suggested_name: str):
        self.name = name
        self.required = tuple(required)
        self.suggested_name = suggested_name
        quoted = " and ".join(f"'{r}'" for r in self.required)
        super().__init__(
            f"specified name '{name}' does not match proof: must contain {quoted}. "
            f"suggested name: {suggested_name}"
        )


class RegistryHTTPError(RegistryError):
    """Base for failures of a registry HTTP call."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class NonceFetchError(RegistryHTTPError):
    """Raised when the registry does not issue a nonce."""
    code = ErrorCode.NONCE_FETCH_ERROR


class SigningError(RegistryError):
    """Raised when the signature operation itself fails."""
    code = ErrorCode.SIGNING_ERROR


class SubmissionError(RegistryHTTPError):
    """Raised when the identity submission is rejected or fails in transit."""
    code = ErrorCode.SUBMISSION_ERROR


class ServiceDefinitionError(RegistryError):
    """Raised when routing identifiers cannot be resolved."""
    code = ErrorCode.SERVICE_DEFINITION_ERROR

    def __init__(self, missing: Sequence[str], source: str = "service definition"):
        self.missing = tuple(missing)
        super().__init__(f"{source} is missing {', '.join(self.missing)}")
