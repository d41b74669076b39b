"""Tests for the HTTP surface."""

import json
from unittest.mock import AsyncMock

import pytest
from aiohttp import test_utils
from nacl.signing import SigningKey

from conftest import interaction_payload
from gatebot.components import VERIFIED_MESSAGE
from gatebot.interactions import FlowOutcome, InteractionResponse
from gatebot.security import SIGNATURE_HEADER, TIMESTAMP_HEADER, SignatureVerifier
from gatebot.web import create_app

TIMESTAMP = "1700000000"


@pytest.fixture
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def signature_verifier(signing_key) -> SignatureVerifier:
    return SignatureVerifier(signing_key.verify_key.encode().hex())


def signed_headers(key: SigningKey, body: bytes) -> dict:
    signature = key.sign(TIMESTAMP.encode() + body).signature.hex()
    return {
        SIGNATURE_HEADER: signature,
        TIMESTAMP_HEADER: TIMESTAMP,
        "Content-Type": "application/json",
    }


class TestInteractionsEndpoint:
    @pytest.mark.asyncio
    async def test_ping_with_valid_signature(
        self, make_flow, signing_key, signature_verifier
    ):
        app = create_app(make_flow(), signature_verifier)
        body = json.dumps({"type": 1}).encode()

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/interactions", data=body, headers=signed_headers(signing_key, body)
            )
            assert resp.status == 200
            assert await resp.json() == {"type": 1}

    @pytest.mark.asyncio
    async def test_bad_signature_is_rejected_before_the_flow(
        self, signature_verifier
    ):
        flow = AsyncMock()
        app = create_app(flow, signature_verifier)
        body = json.dumps({"type": 1}).encode()
        headers = signed_headers(SigningKey.generate(), body)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/interactions", data=body, headers=headers)
            assert resp.status == 401
            assert await resp.json() == {"error": "Bad request signature"}

        flow.handle.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_signature_is_rejected(self, signature_verifier):
        app = create_app(AsyncMock(), signature_verifier)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/interactions", json={"type": 1})
            assert resp.status == 401

    @pytest.mark.asyncio
    async def test_malformed_json_is_rejected(self, signing_key, signature_verifier):
        flow = AsyncMock()
        app = create_app(flow, signature_verifier)
        body = b"{not json"

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/interactions", data=body, headers=signed_headers(signing_key, body)
            )
            assert resp.status == 400

        flow.handle.assert_not_called()

    @pytest.mark.asyncio
    async def test_flow_status_and_body_are_returned(
        self, signing_key, signature_verifier
    ):
        flow = AsyncMock()
        flow.handle.return_value = InteractionResponse(
            body={"error": "Unknown command or interaction"},
            outcome=FlowOutcome.REJECTED,
            status=400,
        )
        app = create_app(flow, signature_verifier)
        body = json.dumps(interaction_payload(custom_id="nope")).encode()

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/interactions", data=body, headers=signed_headers(signing_key, body)
            )
            assert resp.status == 400
            assert await resp.json() == {"error": "Unknown command or interaction"}

        (event,) = flow.handle.await_args.args
        assert event.custom_id == "nope"
        assert event.user_id == "42"

    @pytest.mark.asyncio
    async def test_verify_button_end_to_end(
        self, make_flow, member, signing_key, signature_verifier
    ):
        flow = make_flow()
        app = create_app(flow, signature_verifier)
        body = json.dumps(interaction_payload()).encode()

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/interactions", data=body, headers=signed_headers(signing_key, body)
            )
            payload = await resp.json()

        assert resp.status == 200
        assert payload["type"] == 7
        assert payload["data"]["content"] == VERIFIED_MESSAGE
        member.add_roles.assert_awaited_once()
        await flow.scheduler.shutdown(grace=1)


class TestVerifyStub:
    @pytest.mark.asyncio
    async def test_stub_always_succeeds(self, signature_verifier):
        app = create_app(AsyncMock(), signature_verifier)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/verify", json={"discordId": "42", "username": "alice"}
            )
            assert resp.status == 200
            assert await resp.json() == {"success": True}

            resp = await client.post("/verify", data=b"garbage")
            assert await resp.json() == {"success": True}

    @pytest.mark.asyncio
    async def test_stub_can_be_disabled(self, signature_verifier):
        app = create_app(AsyncMock(), signature_verifier, serve_verify_stub=False)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/verify", json={})
            assert resp.status == 404


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, signature_verifier):
        app = create_app(AsyncMock(), signature_verifier)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/")
            assert await resp.json() == {"status": "ok"}
