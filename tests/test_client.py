"""
Registry HTTP client tests. The requests session is mocked.
"""

from unittest import mock

import pytest
import requests

from kldregistry.client import RegistryClient, get_registry_client
from kldregistry.errors import NonceFetchError, SubmissionError
from kldregistry.models import ServiceTargets
from kldregistry.signing import split_compact
from kldregistry.organization import build_signed_request

TARGETS = ServiceTargets(consortia_id="c0ffee", environment_id="e0abc123", membership_id="m0dead")


def _response(status_code, body=None, text=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    response.text = text if text is not None else str(body)
    return response


@pytest.fixture
def session():
    s = mock.Mock(spec=requests.Session)
    s.headers = {}
    return s


@pytest.fixture
def client(session):
    return RegistryClient("https://registry.example/api/v1/", api_key="k3y", timeout=5, session=session)


class TestFetchNonce:

    def test_posts_targets(self, client, session):
        session.post.return_value = _response(201, {"nonce": "n-123"})

        assert client.fetch_nonce(TARGETS) == "n-123"
        session.post.assert_called_once_with(
            "https://registry.example/api/v1/nonce",
            json={"consortia_id": "c0ffee", "environment_id": "e0abc123", "membership_id": "m0dead"},
            timeout=5,
        )

    def test_omits_unset_targets(self, client, session):
        session.post.return_value = _response(200, {"nonce": "n-123"})
        client.fetch_nonce(ServiceTargets(environment_id="e0abc123"))
        assert session.post.call_args.kwargs["json"] == {"environment_id": "e0abc123"}

    def test_headers(self, session):
        RegistryClient("https://registry.example", api_key="k3y", session=session)
        assert session.headers["Authorization"] == "Bearer k3y"
        assert session.headers["Content-Type"] == "application/json"

    def test_error_status(self, client, session):
        session.post.return_value = _response(401, {"error": "unauthorized"}, text='{"error":"unauthorized"}')

        with pytest.raises(NonceFetchError) as exc:
            client.fetch_nonce(TARGETS)
        assert exc.value.status_code == 401
        assert "unauthorized" in exc.value.body
        assert "could not create nonce" in str(exc.value)

    def test_transport_failure(self, client, session):
        session.post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(NonceFetchError, match="connection refused"):
            client.fetch_nonce(TARGETS)

    def test_missing_nonce(self, client, session):
        session.post.return_value = _response(200, {"something": "else"})
        with pytest.raises(NonceFetchError):
            client.fetch_nonce(TARGETS)

    def test_non_json_body(self, client, session):
        session.post.return_value = _response(200, ValueError("no json"), text="<html>")
        with pytest.raises(NonceFetchError):
            client.fetch_nonce(TARGETS)


class TestSubmitIdentity:

    def _request(self):
        return build_signed_request(TARGETS, split_compact("aGVhZA.Ym9keQ.c2ln"))

    def test_returns_verified_organization(self, client, session):
        session.post.return_value = _response(201, {
            "id": "0x5f1c",
            "name": "MyCo--acme",
            "owner": "0x7c8d",
            "proof": {"headers": ["aGVhZA"], "payload": "Ym9keQ", "signatures": ["c2ln"]},
            "parent": "0x0000",
        })

        verified = client.submit_identity(self._request())

        assert verified.id == "0x5f1c"
        assert verified.parent == "0x0000"
        assert verified.proof.compact() == "aGVhZA.Ym9keQ.c2ln"
        url = session.post.call_args.args[0]
        assert url == "https://registry.example/api/v1/identity"
        assert session.post.call_args.kwargs["json"]["jwsjs"] == {
            "headers": ["aGVhZA"], "payload": "Ym9keQ", "signatures": ["c2ln"],
        }

    def test_rejected(self, client, session):
        session.post.return_value = _response(409, {"error": "exists"})
        with pytest.raises(SubmissionError) as exc:
            client.submit_identity(self._request())
        assert exc.value.status_code == 409

    def test_malformed_proof_in_response(self, client, session):
        session.post.return_value = _response(201, {"id": "0x5f1c", "proof": "not-an-object"})
        with pytest.raises(SubmissionError):
            client.submit_identity(self._request())

    def test_transport_failure(self, client, session):
        session.post.side_effect = requests.Timeout("timed out")
        with pytest.raises(SubmissionError):
            client.submit_identity(self._request())


def test_factory_prefers_explicit_arguments():
    client = get_registry_client(base_url="https://other.example/api/", api_key="abc")
    try:
        assert client.base_url == "https://other.example/api"
        assert client._session.headers["Authorization"] == "Bearer abc"
    finally:
        client.close()
