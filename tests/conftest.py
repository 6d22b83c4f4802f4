import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from kldregistry.models import VerifiedOrganization

PROOF_CN = "acme-abc123-x-MyCo"
OWNER = "0x7c8d0a2b5e4f61a3b9c0d2e4f6a8b0c2d4e6f8a0"
NONCE = "a1b2c3d4e5f60718293a4b5c6d7e8f90"


def write_private_key(path, key, passphrase=None):
    if passphrase:
        encryption = serialization.BestAvailableEncryption(passphrase.encode("utf-8"))
    else:
        encryption = serialization.NoEncryption()
    path.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        encryption,
    ))
    return str(path)


def write_certificate(path, key, common_name):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    return str(path)


class FakeRegistryClient:
    """Records calls instead of talking to a registry."""

    def __init__(self, nonce=NONCE):
        self.nonce = nonce
        self.nonce_requests = []
        self.submitted = []

    def fetch_nonce(self, targets):
        self.nonce_requests.append(targets)
        return self.nonce

    def submit_identity(self, request):
        self.submitted.append(request)
        return VerifiedOrganization(
            id="0x5f1c",
            name="MyCo--acme",
            owner=OWNER,
            proof=request.jwsjs,
        )


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for var in (
        "KLD_PKCS8_SIGNING_KEY_PASSPHRASE",
        "KLD_CONSORTIUM",
        "KLD_ENVIRONMENT",
        "KLD_MEMBERSHIP",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def p256_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def key_file(tmp_path, p256_key):
    return write_private_key(tmp_path / "signing.pem", p256_key)


@pytest.fixture
def proof_file(tmp_path, p256_key):
    return write_certificate(tmp_path / "proof.pem", p256_key, PROOF_CN)


@pytest.fixture
def make_key_file(tmp_path):
    def _make(curve=None, passphrase=None, name="key.pem"):
        key = ec.generate_private_key(curve or ec.SECP256R1())
        return write_private_key(tmp_path / name, key, passphrase), key
    return _make


@pytest.fixture
def make_proof_file(tmp_path, p256_key):
    def _make(common_name, name="cert.pem"):
        return write_certificate(tmp_path / name, p256_key, common_name)
    return _make


@pytest.fixture
def fake_client():
    return FakeRegistryClient()
