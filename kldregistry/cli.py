#!/usr/bin/env python3
"""
kld-registry Command Line Interface

Usage:
    kldregistry create-org --key <file> --cert <file> --owner <address> [--name <name>]
    kldregistry inspect-proof --cert <file> [--name <name>]
    kldregistry verify --request <file> --cert <file>
"""

import argparse
import json
import sys

from cryptography.hazmat.primitives.asymmetric import ec

from . import config
from .errors import RegistryError
from .logging_config import configure_logging


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r') as f:
        return json.load(f)


def cmd_create_org(args):
    """Register an organization with the registry."""
    from .client import get_registry_client
    from .organization import Organization, OrganizationRegistrar

    org = Organization(
        signing_key_file=args.key,
        cert_pem_file=args.cert,
        owner=args.owner,
        name=args.name or "",
        consortium=args.consortium or "",
        environment=args.environment or "",
        membership_id=args.membership or "",
    )

    client = get_registry_client(base_url=args.url, api_key=args.api_key)
    try:
        verified = OrganizationRegistrar(client).invoke_create(org)
    finally:
        client.close()

    print(json.dumps(verified.model_dump(exclude_none=True), indent=2))
    print(f"\n✓ Registered {verified.name}", file=sys.stderr)
    return 0


def cmd_inspect_proof(args):
    """Show the identity tokens carried by a proof certificate."""
    from .proof import parse_certificate_proof, resolve_name

    proof = parse_certificate_proof(args.cert)
    print(json.dumps({
        "org_id": proof.org_id,
        "nonce": proof.nonce,
        "name": proof.display_name,
        "suggested_name": proof.suggested_name,
        "resolved_name": resolve_name(args.name or "", proof),
    }, indent=2))
    return 0


def cmd_verify(args):
    """Verify a signed registration request against a proof certificate."""
    from .models import JSONWebSignature, SignedRequest
    from .proof import parse_certificate_proof
    from .signing import decode_claims, verify_compact_jws

    data = load_json(args.request)
    if "jwsjs" in data:
        jws = SignedRequest.model_validate(data).jwsjs
    else:
        jws = JSONWebSignature.model_validate(data)

    public_key = parse_certificate_proof(args.cert).certificate.public_key()
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        print("✗ certificate does not carry an elliptic-curve key", file=sys.stderr)
        return 1

    if not verify_compact_jws(jws, public_key):
        print("✗ INVALID signature", file=sys.stderr)
        return 1

    print(json.dumps(decode_claims(jws), indent=2))
    print("\n✓ signature valid", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kldregistry",
        description="Organization identity registry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kldregistry create-org -k signing.pem -c proof.pem -o 0x12...ab
  kldregistry inspect-proof -c proof.pem
  kldregistry verify -r request.json -c proof.pem
        """
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    parser.add_argument("--json-logs", action="store_true", default=config.LOG_JSON,
                        help="Emit JSON log lines")
    parser.add_argument("--log-file", default=config.LOG_FILE or None,
                        help="Also write log lines to this file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # create-org
    create_parser = subparsers.add_parser("create-org", help="Register an organization")
    create_parser.add_argument("-k", "--key", required=True, help="PKCS#8 PEM signing key")
    create_parser.add_argument("-c", "--cert", required=True, help="PEM proof certificate")
    create_parser.add_argument("-o", "--owner", required=True, help="Owner account address")
    create_parser.add_argument("-n", "--name", help="Organization name (default: suggested by proof)")
    create_parser.add_argument("--consortium", help="Consortium id")
    create_parser.add_argument("--environment", help="Environment id")
    create_parser.add_argument("--membership", help="Membership id")
    create_parser.add_argument("--url", help="Registry API base URL")
    create_parser.add_argument("--api-key", help="Registry API key")

    # inspect-proof
    inspect_parser = subparsers.add_parser("inspect-proof", help="Show proof certificate tokens")
    inspect_parser.add_argument("-c", "--cert", required=True, help="PEM proof certificate")
    inspect_parser.add_argument("-n", "--name", help="Name to check against the proof")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a signed request")
    verify_parser.add_argument("-r", "--request", required=True, help="SignedRequest or JWS JSON file")
    verify_parser.add_argument("-c", "--cert", required=True, help="PEM proof certificate")

    return parser


COMMANDS = {
    "create-org": cmd_create_org,
    "inspect-proof": cmd_inspect_proof,
    "verify": cmd_verify,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    configure_logging(level=args.log_level, json_format=args.json_logs, log_file=args.log_file)

    try:
        return command(args)
    except RegistryError as e:
        print(f"✗ {e.code.value}: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
