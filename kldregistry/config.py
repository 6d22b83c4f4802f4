"""
Configuration module for kld-registry.

Centralizes all configuration with environment variable support.
Values are read once at import time; callers that need different
values pass them explicitly to the client and registrar.
"""

import os

# ============================================================
# Registry API
# ============================================================

REGISTRY_URL = os.getenv("KLD_REGISTRY_URL", "http://localhost:3000/api/v1")
API_KEY = os.getenv("KLD_API_KEY", "")
REQUEST_TIMEOUT = float(os.getenv("KLD_REQUEST_TIMEOUT", "30"))

# ============================================================
# Signing key
# ============================================================

# Name of the variable holding the PKCS#8 passphrase, not the passphrase itself
PASSPHRASE_ENV = "KLD_PKCS8_SIGNING_KEY_PASSPHRASE"
PASSPHRASE_PROMPT = "Encrypted signing PKCS8 key requires a password:"

# ============================================================
# Service definition (routing identifiers)
# ============================================================

SERVICE_DEFINITION_PATH = os.getenv("KLD_SERVICE_DEFINITION", "")
CONSORTIUM_ENV = "KLD_CONSORTIUM"
ENVIRONMENT_ENV = "KLD_ENVIRONMENT"
MEMBERSHIP_ENV = "KLD_MEMBERSHIP"

# ============================================================
# Logging
# ============================================================

LOG_LEVEL = os.getenv("KLD_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("KLD_LOG_JSON", "false").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("KLD_LOG_FILE", "")

