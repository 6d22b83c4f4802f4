"""
kld-registry JSON Web Signatures

Signs registration claims as a single-signer compact JWS using ECDSA
(ES256, ES384 or ES512, chosen from the key's curve) and verifies such
signatures against a public key.
"""

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from .errors import NonceFetchError, RegistryError, SigningError, UnsupportedCurve
from .keys import SigningIdentity
from .logging_config import audit_log
from .models import JSONWebSignature
from .util import b64url_decode, b64url_encode, canonicalize

logger = logging.getLogger(__name__)

# 521 is not a typo: ES512 signs with the P-521 curve
ALGORITHMS_BY_BIT_SIZE = {
    256: "ES256",
    384: "ES384",
    521: "ES512",
}

NIST_CURVES = {"secp256r1", "secp384r1", "secp521r1"}

HASHES = {
    "ES256": hashes.SHA256,
    "ES384": hashes.SHA384,
    "ES512": hashes.SHA512,
}

NonceFetcher = Callable[[], str]


def select_algorithm(bit_size: int, curve_name: Optional[str] = None) -> str:
    """
    Map a curve to its JWS algorithm.

    Args:
        bit_size: Curve size in bits (256, 384 or 521)
        curve_name: Curve name when known; must then be a NIST prime curve

    Raises:
        UnsupportedCurve: no algorithm exists for the curve
    """
    algorithm = ALGORITHMS_BY_BIT_SIZE.get(bit_size)
    if algorithm is None:
        raise UnsupportedCurve(bit_size, curve_name)
    if curve_name is not None and curve_name not in NIST_CURVES:
        raise UnsupportedCurve(bit_size, curve_name)
    return algorithm


def _coordinate_size(bit_size: int) -> int:
    return (bit_size + 7) // 8


@dataclass(frozen=True)
class RegistrationClaims:
    """The claims signed when registering an organization."""
    env_id: str
    name: str
    proof: str
    address: str
    nonce: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "envId": self.env_id,
            "nonce": self.nonce,
            "name": self.name,
            "proof": self.proof,
            "address": self.address,
        }

    def canonical_bytes(self) -> bytes:
        return canonicalize(self.to_dict())


class JWSSigner:
    """
    Single-signer compact JWS producer.

    The protected header is exactly ``{"alg": ...}``; no unprotected
    headers are emitted.
    """

    def __init__(self, identity: SigningIdentity):
        self.algorithm = select_algorithm(identity.bit_size, identity.curve_name)
        self._identity = identity
        self._hash = HASHES[self.algorithm]
        self._size = _coordinate_size(identity.bit_size)

    def protected_header(self) -> str:
        return b64url_encode(canonicalize({"alg": self.algorithm}))

    def sign(self, payload: bytes) -> str:
        """
        Sign ``payload`` and return its compact serialization.

        Raises:
            SigningError: the key is wiped or the signature fails
        """
        signing_input = f"{self.protected_header()}.{b64url_encode(payload)}"
        key = self._identity.private_key()
        try:
            der = key.sign(signing_input.encode("ascii"), ec.ECDSA(self._hash()))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningError(f"{self.algorithm} signature failed: {e}") from e
        finally:
            del key

        r, s = decode_dss_signature(der)
        signature = r.to_bytes(self._size, "big") + s.to_bytes(self._size, "big")
        return f"{signing_input}.{b64url_encode(signature)}"


def split_compact(serialized: str) -> JSONWebSignature:
    """
    Split ``header.payload.signature`` into the wire structure.

    Raises:
        SigningError: the serialization does not have three segments
    """
    segments = serialized.split(".")
    if len(segments) != 3:
        raise SigningError(f"compact JWS has {len(segments)} segments, expected 3")
    return JSONWebSignature(
        headers=[segments[0]],
        payload=segments[1],
        signatures=[segments[2]],
    )


def sign_registration(
    identity: SigningIdentity,
    claims: RegistrationClaims,
    fetch_nonce: NonceFetcher,
) -> JSONWebSignature:
    """
    Sign registration claims with a fresh registry nonce.

    The identity is wiped before this function returns or raises.

    Args:
        identity: Signing key, consumed by this call
        claims: Claims without a nonce
        fetch_nonce: Callable returning a nonce issued by the registry

    Raises:
        UnsupportedCurve: no algorithm for the key's curve
        NonceFetchError: the registry did not issue a nonce
        SigningError: the signature could not be produced
    """
    with identity:
        signer = JWSSigner(identity)

        try:
            nonce = fetch_nonce()
        except NonceFetchError:
            raise
        except RegistryError as e:
            raise NonceFetchError(str(e)) from e
        if not nonce:
            raise NonceFetchError("registry returned an empty nonce")
        audit_log.nonce_issued(nonce)

        payload = replace(claims, nonce=nonce).canonical_bytes()
        jws = split_compact(signer.sign(payload))

    audit_log.jws_signed(signer.algorithm, len(payload))
    return jws


def decode_claims(jws: JSONWebSignature) -> Dict[str, Any]:
    """Decode the payload segment of a JWS as JSON."""
    return json.loads(b64url_decode(jws.payload))


def verify_compact_jws(jws: JSONWebSignature, public_key: ec.EllipticCurvePublicKey) -> bool:
    """
    Verify a single-signer JWS against an EC public key.

    The header algorithm must match the key's curve.

    Returns:
        True if signature is valid, False otherwise
    """
    if len(jws.headers) != 1 or len(jws.signatures) != 1:
        return False

    try:
        header = json.loads(b64url_decode(jws.headers[0]))
        if not isinstance(header, dict):
            return False

        algorithm = select_algorithm(public_key.curve.key_size, public_key.curve.name)
        if header.get("alg") != algorithm:
            return False

        size = _coordinate_size(public_key.curve.key_size)
        signature = b64url_decode(jws.signatures[0])
        if len(signature) != 2 * size:
            return False

        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        signing_input = f"{jws.headers[0]}.{jws.payload}".encode("ascii")
        public_key.verify(encode_dss_signature(r, s), signing_input, ec.ECDSA(HASHES[algorithm]()))
        return True
    except InvalidSignature:
        return False
    except (ValueError, UnsupportedCurve) as e:
        logger.debug("Rejecting malformed JWS: %s", e)
        return False
