"""
kld-registry: organization identity registration client

Version: 1.0.0
License: Apache 2.0

Proves ownership of an elliptic-curve signing key tied to a certificate
issued by the registry, and registers the organization named by that
certificate.

The certificate common name carries four tokens,
``<orgid>-<nonce>--<name>``. The registration claims (environment id,
a registry nonce, the organization name, the certificate PEM and the
owner address) are signed as a single-signer compact JWS with ES256,
ES384 or ES512 depending on the key's curve.

Usage:
    from kldregistry import (
        Organization,
        OrganizationRegistrar,
        get_registry_client,
    )

    org = Organization(
        signing_key_file="signing.pem",
        cert_pem_file="proof.pem",
        owner="0x7c8d0a2b5e...",
    )

    registrar = OrganizationRegistrar(get_registry_client())
    verified = registrar.invoke_create(org)
    print(verified.id, verified.name)

The private scalar of the signing key is zeroed as soon as the
registration claims are signed, whether or not signing succeeded.
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Errors
from .errors import (
    ErrorCode,
    RegistryError,
    FileReadError,
    ParseError,
    AuthError,
    UnsupportedKeyType,
    UnsupportedCurve,
    InvalidProofFormat,
    NameMismatch,
    NonceFetchError,
    SigningError,
    SubmissionError,
    ServiceDefinitionError,
)

# Wire models
from .models import (
    JSONWebSignature,
    ServiceTargets,
    SignedRequest,
    VerifiedOrganization,
)

# Keys
from .keys import (
    PassphraseProvider,
    PromptPassphraseProvider,
    StaticPassphraseProvider,
    SigningIdentity,
    load_signing_key,
)

# Proofs
from .proof import (
    CertificateProof,
    parse_certificate_proof,
    resolve_name,
)

# Signing
from .signing import (
    RegistrationClaims,
    JWSSigner,
    select_algorithm,
    sign_registration,
    split_compact,
    decode_claims,
    verify_compact_jws,
)

# Registry access
from .client import RegistryClient, get_registry_client
from .service import get_service_definition

# Registration
from .organization import (
    Organization,
    OrganizationRegistrar,
    RegistrationAttempt,
    RegistrationState,
    build_signed_request,
)


__all__ = [
    # Version
    "__version__",

    # Errors
    "ErrorCode",
    "RegistryError",
    "FileReadError",
    "ParseError",
    "AuthError",
    "UnsupportedKeyType",
    "UnsupportedCurve",
    "InvalidProofFormat",
    "NameMismatch",
    "NonceFetchError",
    "SigningError",
    "SubmissionError",
    "ServiceDefinitionError",

    # Wire models
    "JSONWebSignature",
    "ServiceTargets",
    "SignedRequest",
    "VerifiedOrganization",

    # Keys
    "PassphraseProvider",
    "PromptPassphraseProvider",
    "StaticPassphraseProvider",
    "SigningIdentity",
    "load_signing_key",

    # Proofs
    "CertificateProof",
    "parse_certificate_proof",
    "resolve_name",

    # Signing
    "RegistrationClaims",
    "JWSSigner",
    "select_algorithm",
    "sign_registration",
    "split_compact",
    "decode_claims",
    "verify_compact_jws",

    # Registry access
    "RegistryClient",
    "get_registry_client",
    "get_service_definition",

    # Registration
    "Organization",
    "OrganizationRegistrar",
    "RegistrationAttempt",
    "RegistrationState",
    "build_signed_request",
]
