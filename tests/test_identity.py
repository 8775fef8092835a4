import json

import httpx
import pytest

from canteen.services.identity import (
    IdentityServiceError,
    MockIdentityService,
    SupabaseIdentityService,
)


class TestMockIdentity:
    async def test_sign_in_and_resolve(self, identity):
        result = await identity.sign_in("Asha@Example.com", "secret123")

        assert result.success
        assert result.user.email == "asha@example.com"
        assert await identity.get_user(result.access_token) == result.user

    async def test_same_email_same_user_id(self, identity):
        first = await identity.sign_in("asha@example.com", "secret123")
        second = await identity.sign_in("asha@example.com", "secret123")

        assert first.user.id == second.user.id
        assert first.access_token != second.access_token

    @pytest.mark.parametrize("email, password", [
        ("not-an-email", "secret123"),
        ("asha@example.com", "short"),
    ])
    async def test_rejects_bad_credentials(self, identity, email, password):
        result = await identity.sign_in(email, password)

        assert not result.success
        assert result.error_code == "invalid_credentials"

    async def test_sign_out_revokes_token(self, identity):
        result = await identity.sign_in("asha@example.com", "secret123")

        assert await identity.sign_out(result.access_token) is True
        assert await identity.get_user(result.access_token) is None
        assert await identity.sign_out(result.access_token) is False


def _hosted(handler) -> SupabaseIdentityService:
    return SupabaseIdentityService(
        url="https://project.supabase.co",
        anon_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


class TestSupabaseIdentity:
    async def test_sign_in_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["grant_type"] = request.url.params["grant_type"]
            seen["apikey"] = request.headers["apikey"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "access_token": "jwt-token",
                "user": {"id": "u-1", "email": "asha@example.com"},
            })

        service = _hosted(handler)
        result = await service.sign_in("asha@example.com", "secret123")
        await service.close()

        assert result.success
        assert result.access_token == "jwt-token"
        assert result.user.id == "u-1"
        assert seen == {
            "path": "/auth/v1/token",
            "grant_type": "password",
            "apikey": "anon-key",
            "body": {"email": "asha@example.com", "password": "secret123"},
        }

    async def test_sign_in_rejected(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={
                "error": "invalid_grant",
                "error_description": "Invalid login credentials",
            })

        result = await _hosted(handler).sign_in("asha@example.com", "wrong")

        assert not result.success
        assert result.error_code == "invalid_credentials"
        assert result.error_message == "Invalid login credentials"

    async def test_sign_in_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _hosted(handler).sign_in("asha@example.com", "secret123")

        assert not result.success
        assert result.error_code == "transport_error"

    async def test_get_user_and_sign_out(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.headers.get("Authorization") != "Bearer good":
                return httpx.Response(401, json={"msg": "invalid JWT"})
            if request.url.path == "/auth/v1/user":
                return httpx.Response(200, json={"id": "u-1", "email": "asha@example.com"})
            if request.url.path == "/auth/v1/logout":
                return httpx.Response(204)
            return httpx.Response(404)

        service = _hosted(handler)

        assert (await service.get_user("good")).id == "u-1"
        assert await service.get_user("bad") is None
        assert await service.sign_out("good") is True

    async def test_sign_in_with_incomplete_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"access_token": "jwt-token"})

        result = await _hosted(handler).sign_in("asha@example.com", "secret123")

        assert not result.success
        assert result.error_code == "auth_error"

    async def test_get_user_outage_is_not_an_invalid_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(IdentityServiceError) as exc_info:
            await _hosted(handler).get_user("good")

        assert exc_info.value.code == "transport_error"

    async def test_get_user_server_error_is_an_outage(self):
        service = _hosted(lambda request: httpx.Response(503, json={"msg": "unavailable"}))

        with pytest.raises(IdentityServiceError):
            await service.get_user("good")

    async def test_health_check(self):
        service = _hosted(lambda request: httpx.Response(200, json={"name": "GoTrue"}))

        assert await service.health_check() is True

    def test_requires_configuration(self):
        with pytest.raises(ValueError):
            SupabaseIdentityService(url="https://project.supabase.co", anon_key="")


async def test_mock_is_healthy():
    assert await MockIdentityService().health_check() is True
