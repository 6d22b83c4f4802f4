"""
Logging configuration for kld-registry.

Provides structured JSON logging and an audit logger for the
registration flow. Secrets are never passed to these helpers; nonces
are masked before they are logged.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from .util import mask_sensitive

# Context variable for registration attempt tracking
registration_id_var: ContextVar[str] = ContextVar('registration_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One JSON object per line, with the registration id attached when
    a registration attempt is in progress.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        registration_id = registration_id_var.get()
        if registration_id:
            log_data["registration_id"] = registration_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class AuditLogger:
    """
    Specialized logger for registration audit events.

    Records what was claimed, what was signed and what the registry
    answered, without ever recording key material.
    """

    def __init__(self, name: str = "kldregistry.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return

        extra = {
            "event_type": event_type,
            "registration_id": registration_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def registration_request(
        self,
        consortium: str,
        environment: str,
        membership_id: str,
        owner: str
    ) -> None:
        """Log the start of a registration attempt."""
        self._log(
            logging.INFO,
            "REGISTRATION_REQUEST",
            consortium=consortium,
            environment=environment,
            membership_id=membership_id,
            owner=owner,
            message=f"Registration requested for owner {owner}"
        )

    def name_resolved(self, name: str, suggested_name: str, derived: bool) -> None:
        """Log the name bound to the proof."""
        self._log(
            logging.INFO,
            "NAME_RESOLVED",
            name=name,
            suggested_name=suggested_name,
            derived=derived,
            message=f"Using organization name {name}"
        )

    def nonce_issued(self, nonce: str) -> None:
        """Log receipt of a registry nonce."""
        self._log(
            logging.DEBUG,
            "NONCE_ISSUED",
            nonce=mask_sensitive(nonce),
            message="Registry issued a nonce"
        )

    def jws_signed(self, algorithm: str, payload_length: int) -> None:
        """Log a completed signature."""
        self._log(
            logging.INFO,
            "JWS_SIGNED",
            algorithm=algorithm,
            payload_length=payload_length,
            message=f"Registration claims signed with {algorithm}"
        )

    def key_wiped(self, bit_size: int) -> None:
        """Log that private scalar material was zeroed."""
        self._log(
            logging.DEBUG,
            "KEY_WIPED",
            bit_size=bit_size,
            message="Signing key scalar zeroed"
        )

    def registration_complete(self, org_id: Optional[str], name: Optional[str]) -> None:
        """Log a successful submission."""
        self._log(
            logging.INFO,
            "REGISTRATION_COMPLETE",
            org_id=org_id,
            name=name,
            message=f"Organization {name} registered"
        )

    def registration_failed(self, state: str, error_code: str, reason: str) -> None:
        """Log a terminal failure."""
        self._log(
            logging.WARNING,
            "REGISTRATION_FAILED",
            state=state,
            error_code=error_code,
            reason=reason,
            message=f"Registration failed in {state}: {error_code}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stderr keeps stdout free for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_registration_id(registration_id: Optional[str] = None) -> str:
    """
    Set the registration id for the current context.

    Args:
        registration_id: Id to set, or None to generate one

    Returns:
        The id that was set
    """
    if registration_id is None:
        registration_id = str(uuid.uuid4())
    registration_id_var.set(registration_id)
    return registration_id


# Global audit logger instance
audit_log = AuditLogger()
