import time

import pytest

from condo.core.errors import AuthenticationError
from condo.services.auth_service import MappingSessionStorage, MemorySessionStorage, SessionProvider

OPERATOR_PASSWORD = "porteiro-123"


@pytest.mark.asyncio
async def test_login_logout_notifies_listeners(gateway, operator):
    provider = SessionProvider(gateway)
    seen = []
    unsubscribe = provider.subscribe(seen.append)

    session = await provider.login(operator.email, OPERATOR_PASSWORD)
    assert provider.is_authenticated
    assert seen == [session]
    assert (await gateway.get_user(session.access_token)).id == operator.id

    await provider.logout()
    assert provider.session is None
    assert seen == [session, None]

    with pytest.raises(AuthenticationError):
        await gateway.get_user(session.access_token)

    unsubscribe()
    await provider.login(operator.email, OPERATOR_PASSWORD)
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_wrong_password(gateway, operator):
    provider = SessionProvider(gateway)
    with pytest.raises(AuthenticationError):
        await provider.login(operator.email, "wrong-password")
    assert not provider.is_authenticated


@pytest.mark.asyncio
async def test_failing_listener_does_not_stop_others(gateway, operator):
    provider = SessionProvider(gateway)
    seen = []

    def broken(session):
        raise RuntimeError("listener bug")

    provider.subscribe(broken)
    provider.subscribe(seen.append)
    await provider.login(operator.email, OPERATOR_PASSWORD)
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(gateway, operator):
    provider = SessionProvider(gateway)
    first = await provider.login(operator.email, OPERATOR_PASSWORD)
    second = await provider.refresh()
    assert second.refresh_token != first.refresh_token

    # a refresh token is single use
    with pytest.raises(AuthenticationError):
        await gateway.refresh(first.refresh_token)


@pytest.mark.asyncio
async def test_refresh_without_session():
    provider = SessionProvider(gateway=None)
    with pytest.raises(AuthenticationError):
        await provider.refresh()


@pytest.mark.asyncio
async def test_restore_from_visitor_state(gateway, admin):
    state = {}
    first = SessionProvider(gateway, MappingSessionStorage(state))
    session = await first.login(admin.email, "admin-pass-123")

    # the next page load of the same visitor
    second = SessionProvider(gateway, MappingSessionStorage(state))
    restored = await second.restore()
    assert restored.access_token == session.access_token
    assert restored.role.value == "admin"

    await second.logout()
    assert "auth_session" not in state
    assert await SessionProvider(gateway, MappingSessionStorage(state)).restore() is None


@pytest.mark.asyncio
async def test_visitors_do_not_share_a_session(gateway, admin):
    visitor_a, visitor_b = {}, {}
    await SessionProvider(gateway, MappingSessionStorage(visitor_a)).login(admin.email, "admin-pass-123")

    provider = SessionProvider(gateway, MappingSessionStorage(visitor_b))
    assert await provider.restore() is None
    assert not provider.is_authenticated
    assert visitor_b == {}


@pytest.mark.asyncio
async def test_restore_refreshes_expired_session(gateway, operator):
    storage = MemorySessionStorage()
    provider = SessionProvider(gateway, storage)
    session = await provider.login(operator.email, OPERATOR_PASSWORD)
    storage.save(session.model_copy(update={"expires_at": int(time.time()) - 10}))

    restored = await SessionProvider(gateway, storage).restore()
    assert restored.access_token != session.access_token
    assert restored.expires_at > time.time()


@pytest.mark.asyncio
async def test_restore_drops_session_that_cannot_refresh(gateway, operator):
    storage = MemorySessionStorage()
    session = await SessionProvider(gateway, storage).login(operator.email, OPERATOR_PASSWORD)
    storage.save(session.model_copy(update={"expires_at": 1, "refresh_token": "revoked"}))

    provider = SessionProvider(gateway, storage)
    assert await provider.restore() is None
    assert storage.load() is None
