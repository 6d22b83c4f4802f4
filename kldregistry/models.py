"""Wire models exchanged with the registry API."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JSONWebSignature(BaseModel):
    """
    A compact JWS split into its three segments.

    ``headers`` and ``signatures`` are lists for wire compatibility with
    the registry, but a registration always carries exactly one of each.
    """
    model_config = ConfigDict(frozen=True)

    headers: List[str] = Field(default_factory=list)
    payload: str = ""
    signatures: List[str] = Field(default_factory=list)

    def compact(self) -> str:
        """Reassemble the ``header.payload.signature`` serialization."""
        if len(self.headers) != 1 or len(self.signatures) != 1:
            raise ValueError("expected a single-signer JWS")
        return f"{self.headers[0]}.{self.payload}.{self.signatures[0]}"


class ServiceTargets(BaseModel):
    """Routing identifiers of the member registering an organization."""
    consortia_id: Optional[str] = None
    environment_id: Optional[str] = None
    membership_id: Optional[str] = None

    def missing(self) -> List[str]:
        return [name for name, value in self.model_dump().items() if not value]


class SignedRequest(BaseModel):
    """Body of ``POST /identity``."""
    model_config = ConfigDict(frozen=True)

    consortia_id: str
    environment_id: str
    membership_id: str
    jwsjs: JSONWebSignature


class VerifiedOrganization(BaseModel):
    """An organization as recorded by the registry."""
    id: Optional[str] = None
    name: Optional[str] = None
    owner: Optional[str] = None
    proof: Optional[JSONWebSignature] = None
    parent: Optional[str] = None
