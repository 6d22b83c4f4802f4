"""
Organization registration.

Sequences a registration attempt: resolve routing, parse the proof
certificate, bind the name, load the key, sign the claims, build the
request and submit it. Every failure is terminal for the attempt and
nothing is submitted unless a complete signed request was built.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .errors import RegistryError, ServiceDefinitionError
from .keys import PassphraseProvider, load_signing_key
from .logging_config import audit_log, set_registration_id
from .models import JSONWebSignature, ServiceTargets, SignedRequest, VerifiedOrganization
from .proof import parse_certificate_proof, resolve_name
from .service import get_service_definition
from .signing import RegistrationClaims, sign_registration

logger = logging.getLogger(__name__)


class RegistrationState(str, Enum):
    """Steps of a registration attempt."""
    RESOLVE_ROUTING = "RESOLVE_ROUTING"
    LOAD_PROOF = "LOAD_PROOF"
    DERIVE_NAME = "DERIVE_NAME"
    LOAD_KEY = "LOAD_KEY"
    SIGN = "SIGN"
    BUILD_REQUEST = "BUILD_REQUEST"
    SUBMIT = "SUBMIT"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class Organization:
    """
    An organization to register.

    Routing identifiers left empty are resolved from the service
    definition. An empty name adopts the name suggested by the proof.
    """
    signing_key_file: str
    cert_pem_file: str
    owner: str
    name: str = ""
    consortium: str = ""
    environment: str = ""
    membership_id: str = ""

    def targets(self) -> ServiceTargets:
        return ServiceTargets(
            consortia_id=self.consortium or None,
            environment_id=self.environment or None,
            membership_id=self.membership_id or None,
        )


def build_signed_request(targets: ServiceTargets, jws: JSONWebSignature) -> SignedRequest:
    """Assemble the submission envelope from resolved targets and a JWS."""
    return SignedRequest(
        consortia_id=targets.consortia_id,
        environment_id=targets.environment_id,
        membership_id=targets.membership_id,
        jwsjs=jws,
    )


@dataclass
class RegistrationAttempt:
    """Progress of a single registration attempt."""
    registration_id: str
    state: RegistrationState = RegistrationState.RESOLVE_ROUTING

    def enter(self, state: RegistrationState) -> None:
        logger.debug("Registration %s step %s", self.registration_id, state.value)
        self.state = state


class OrganizationRegistrar:
    """
    Registers organizations with the registry.

    Each call runs its own RegistrationAttempt, so one registrar can serve
    several registrations at once. ``last_attempt`` is the most recently
    started one.

    Args:
        client: Object with ``fetch_nonce(targets)`` and
            ``submit_identity(request)``, normally a RegistryClient
        passphrase_provider: Source of the passphrase for encrypted keys
        service_definition: Callable returning routing identifiers
    """

    def __init__(
        self,
        client,
        passphrase_provider: Optional[PassphraseProvider] = None,
        service_definition: Callable[[], ServiceTargets] = get_service_definition,
    ):
        self.client = client
        self.passphrase_provider = passphrase_provider
        self.service_definition = service_definition
        self.last_attempt: Optional[RegistrationAttempt] = None

    @property
    def state(self) -> Optional[RegistrationState]:
        """State of the most recently started attempt."""
        return self.last_attempt.state if self.last_attempt else None

    def _begin(self) -> RegistrationAttempt:
        attempt = RegistrationAttempt(registration_id=set_registration_id())
        self.last_attempt = attempt
        return attempt

    def resolve_targets(self, org: Organization) -> ServiceTargets:
        targets = org.targets()
        if not targets.missing():
            return targets

        defined = self.service_definition()
        resolved = ServiceTargets(
            consortia_id=targets.consortia_id or defined.consortia_id,
            environment_id=targets.environment_id or defined.environment_id,
            membership_id=targets.membership_id or defined.membership_id,
        )
        if resolved.missing():
            raise ServiceDefinitionError(resolved.missing())
        return resolved

    def _signed_request(self, org: Organization, attempt: RegistrationAttempt) -> SignedRequest:
        attempt.enter(RegistrationState.RESOLVE_ROUTING)
        targets = self.resolve_targets(org)
        audit_log.registration_request(
            targets.consortia_id, targets.environment_id, targets.membership_id, org.owner
        )

        attempt.enter(RegistrationState.LOAD_PROOF)
        proof = parse_certificate_proof(org.cert_pem_file)

        attempt.enter(RegistrationState.DERIVE_NAME)
        name = resolve_name(org.name, proof)
        audit_log.name_resolved(name, proof.suggested_name, derived=not org.name)

        attempt.enter(RegistrationState.LOAD_KEY)
        with load_signing_key(org.signing_key_file, self.passphrase_provider) as identity:
            attempt.enter(RegistrationState.SIGN)
            claims = RegistrationClaims(
                env_id=targets.environment_id,
                name=name,
                proof=proof.pem_text,
                address=org.owner,
            )
            jws = sign_registration(identity, claims, lambda: self.client.fetch_nonce(targets))

        attempt.enter(RegistrationState.BUILD_REQUEST)
        return build_signed_request(targets, jws)

    def _fail(self, attempt: RegistrationAttempt, error: RegistryError) -> None:
        failed_in = attempt.state
        attempt.state = RegistrationState.FAILED
        audit_log.registration_failed(failed_in.value, error.code.value, error.message)

    def create_signed_request(self, org: Organization) -> SignedRequest:
        """
        Build the signed registration request without submitting it.

        The registry is still contacted for the nonce.
        """
        attempt = self._begin()
        try:
            return self._signed_request(org, attempt)
        except RegistryError as e:
            self._fail(attempt, e)
            raise

    def invoke_create(self, org: Organization) -> VerifiedOrganization:
        """
        Register a verified organization and store its proof in the registry.

        Raises:
            RegistryError: any step failed; nothing was submitted unless
                the failure is a SubmissionError
        """
        attempt = self._begin()
        try:
            request = self._signed_request(org, attempt)

            attempt.enter(RegistrationState.SUBMIT)
            verified = self.client.submit_identity(request)
        except RegistryError as e:
            self._fail(attempt, e)
            raise

        attempt.enter(RegistrationState.DONE)
        audit_log.registration_complete(verified.id, verified.name)
        return verified
