"""
Certificate proofs of organization identity.

The registry issues each organization a certificate whose subject common
name encodes four hyphen-delimited tokens::

    <orgid>-<nonce>-<unused>-<name>

The organization name claimed at registration must be bound to the
first and last of those tokens.
"""

from dataclasses import dataclass
from typing import Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID

from .errors import InvalidProofFormat, NameMismatch, ParseError
from .util import read_file

EXPECTED_CN_FORMAT = "<orgid>-<nonce>--<name>"
CN_TOKEN_COUNT = 4


@dataclass(frozen=True)
class CertificateProof:
    """A parsed proof certificate and the identity tokens of its common name."""
    pem: bytes
    certificate: x509.Certificate
    tokens: Tuple[str, str, str, str]

    @property
    def org_id(self) -> str:
        return self.tokens[0]

    @property
    def nonce(self) -> str:
        return self.tokens[1]

    @property
    def display_name(self) -> str:
        return self.tokens[3]

    @property
    def suggested_name(self) -> str:
        """Canonical registration name, ``<name>--<orgid>``."""
        return f"{self.display_name}--{self.org_id}"

    @property
    def pem_text(self) -> str:
        return self.pem.decode("utf-8")


def common_name(certificate: x509.Certificate) -> str:
    """Subject CN; the last one wins when several are present."""
    attributes = certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return ""
    value = attributes[-1].value
    return value if isinstance(value, str) else value.decode("utf-8")


def split_common_name(cn: str) -> Tuple[str, str, str, str]:
    """
    Split a proof common name into its four tokens.

    Raises:
        InvalidProofFormat: token count is not four, or the org id or
            name token is empty
    """
    tokens = cn.split("-")
    if len(tokens) != CN_TOKEN_COUNT:
        raise InvalidProofFormat(cn, EXPECTED_CN_FORMAT)
    if not tokens[0] or not tokens[3]:
        raise InvalidProofFormat(cn, EXPECTED_CN_FORMAT)
    return tokens[0], tokens[1], tokens[2], tokens[3]


def parse_certificate_proof(path: str) -> CertificateProof:
    """
    Read and parse a PEM certificate proof.

    Raises:
        FileReadError: file cannot be read
        ParseError: no PEM block or malformed certificate
        InvalidProofFormat: common name does not carry four tokens
    """
    pem = read_file(path)

    try:
        certificate = x509.load_pem_x509_certificate(pem)
    except ValueError as e:
        raise ParseError(f"failed to parse certificate {path}: {e}") from e

    try:
        pem.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"certificate file {path} is not UTF-8 text") from e

    return CertificateProof(
        pem=pem,
        certificate=certificate,
        tokens=split_common_name(common_name(certificate)),
    )


def resolve_name(requested: str, proof: CertificateProof) -> str:
    """
    Return the organization name to claim.

    An empty request adopts the suggested name. Any other name must
    contain both the name token and the org id token of the proof.

    Raises:
        NameMismatch: the requested name omits either token
    """
    if not requested:
        return proof.suggested_name

    if proof.display_name not in requested or proof.org_id not in requested:
        raise NameMismatch(
            requested,
            (proof.display_name, proof.org_id),
            proof.suggested_name,
        )
    return requested
