"""
Authentication: the gateway to the identity provider plus an explicit
session lifecycle for clients that keep a logged-in session around
(the admin panel, scripts).
"""
import secrets
import time
import uuid
from typing import Callable, Dict, List, MutableMapping, Optional, Protocol

import httpx
from supabase import AsyncClient, AsyncClientOptions, AuthApiError, AuthError, create_async_client

from condo.core.config import settings
from condo.core.errors import (
    AuthenticationError,
    CondoError,
    ConflictError,
    TransientNetworkError,
    ValidationError,
)
from condo.core.logger import logger
from condo.models.db_models import AuthSession, CurrentUser, Role, UserProfile
from condo.services.db_service import HTTP_TIMEOUT, RecordStore, eq

PROFILES = "profiles"
ACCESS_TOKEN_TTL = 3600

SessionListener = Callable[[Optional[AuthSession]], None]


class AuthGateway(Protocol):
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def refresh(self, refresh_token: str) -> AuthSession: ...

    async def sign_out(self, access_token: str) -> None: ...

    async def sign_up(self, email: str, password: str, full_name: str) -> UserProfile: ...

    async def request_password_reset(self, email: str) -> None: ...

    async def get_user(self, access_token: str) -> CurrentUser: ...

    async def set_password(self, user_id: str, password: str) -> None: ...

    async def close(self) -> None: ...


async def _load_profile(store: RecordStore, user_id: str, email: Optional[str] = None) -> UserProfile:
    row = await store.first(PROFILES, [eq("id", user_id)])
    if row is None:
        # account without a profile row yet: least privileged
        return UserProfile(id=user_id, email=email)
    return UserProfile.model_validate(row)


def _auth_error(exc: Exception, action: str) -> CondoError:
    if isinstance(exc, CondoError):
        return exc
    if isinstance(exc, AuthApiError):
        status = getattr(exc, "status", None) or 0
        if action == "sign_up" and status in (400, 422):
            if "registered" in str(exc).lower() or "exists" in str(exc).lower():
                return ConflictError("Este e-mail já está cadastrado.", detail=str(exc))
            return ValidationError("Não foi possível criar a conta.", detail=str(exc))
        if status in (400, 401, 403, 422):
            return AuthenticationError(detail=f"{action}: {exc}")
    if isinstance(exc, AuthError):
        return AuthenticationError(detail=f"{action}: {exc}")
    return TransientNetworkError(detail=f"auth/{action}: {exc}")


class SupabaseAuthGateway:
    """AuthGateway over Supabase Auth (GoTrue) with role data in the profiles table."""

    def __init__(self, store: RecordStore, url: str = None, key: str = None, service_key: str = None):
        self.store = store
        self._url = url or settings.SUPABASE_URL
        self._key = key or settings.SUPABASE_KEY
        self._service_key = service_key or settings.SUPABASE_SERVICE_KEY
        self._admin: Optional[AsyncClient] = None
        self._http: Optional[httpx.AsyncClient] = None

    def _options(self) -> AsyncClientOptions:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=HTTP_TIMEOUT, follow_redirects=True)
        return AsyncClientOptions(httpx_client=self._http, persist_session=False, auto_refresh_token=False)

    async def _client(self) -> AsyncClient:
        # one client per call: the GoTrue client keeps the signed-in session on itself
        if not self._url or not self._key:
            raise TransientNetworkError(detail="Supabase credentials missing")
        return await create_async_client(self._url, self._key, self._options())

    async def _admin_client(self) -> AsyncClient:
        if not self._admin:
            if not self._service_key:
                raise TransientNetworkError(detail="SUPABASE_SERVICE_KEY missing")
            self._admin = await create_async_client(self._url, self._service_key, self._options())
        return self._admin

    async def close(self) -> None:
        self._admin = None
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _to_session(self, response) -> AuthSession:
        if not response.session or not response.user:
            raise AuthenticationError()
        profile = await _load_profile(self.store, response.user.id, response.user.email)
        return AuthSession(
            user_id=response.user.id,
            email=response.user.email,
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            expires_at=response.session.expires_at,
            role=profile.role,
            must_change_password=profile.must_change_password,
        )

    async def sign_in(self, email, password):
        try:
            client = await self._client()
            response = await client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"⚠️ Sign in failed for {email}: {e}")
            raise _auth_error(e, "sign_in")
        return await self._to_session(response)

    async def refresh(self, refresh_token):
        try:
            client = await self._client()
            response = await client.auth.refresh_session(refresh_token)
        except Exception as e:
            raise _auth_error(e, "refresh")
        return await self._to_session(response)

    async def sign_out(self, access_token):
        try:
            client = await self._admin_client()
            await client.auth.admin.sign_out(access_token)
        except Exception as e:
            # the access token still expires on its own
            logger.warning(f"⚠️ Sign out could not revoke the session: {e}")

    async def sign_up(self, email, password, full_name):
        try:
            client = await self._client()
            response = await client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            })
        except Exception as e:
            raise _auth_error(e, "sign_up")
        if not response.user:
            raise ValidationError("Não foi possível criar a conta.")

        try:
            row = await self.store.insert(PROFILES, {
                "id": response.user.id,
                "email": email,
                "full_name": full_name,
                "role": Role.OPERATOR,
            })
        except ConflictError:
            # created by a database trigger on auth.users
            return await _load_profile(self.store, response.user.id, email)
        logger.info(f"👤 Account created: {email}")
        return UserProfile.model_validate(row)

    async def request_password_reset(self, email):
        try:
            client = await self._client()
            await client.auth.reset_password_for_email(email)
        except Exception as e:
            raise _auth_error(e, "password_reset")

    async def get_user(self, access_token):
        try:
            client = await self._admin_client()
            response = await client.auth.get_user(access_token)
        except Exception as e:
            raise _auth_error(e, "get_user")
        if not response or not response.user:
            raise AuthenticationError()
        profile = await _load_profile(self.store, response.user.id, response.user.email)
        return CurrentUser(**profile.model_dump(include={"id", "email", "full_name", "role",
                                                         "must_change_password"}))

    async def set_password(self, user_id, password):
        try:
            client = await self._admin_client()
            await client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            raise _auth_error(e, "set_password")


class InMemoryAuthGateway:
    """Accounts and tokens kept in process; profiles live in the given store."""

    def __init__(self, store: RecordStore):
        self.store = store
        self._accounts: Dict[str, dict] = {}  # email -> {id, password}
        self._access: Dict[str, str] = {}  # token -> user id
        self._refresh: Dict[str, str] = {}
        self.reset_requests: List[str] = []

    async def create_account(self, email: str, password: str, full_name: str = None,
                             role: Role = Role.OPERATOR, must_change_password: bool = False) -> UserProfile:
        email = email.strip().lower()
        if email in self._accounts:
            raise ConflictError("Este e-mail já está cadastrado.")
        user_id = str(uuid.uuid4())
        row = await self.store.insert(PROFILES, {
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "role": Role(role),
            "must_change_password": must_change_password,
        })
        self._accounts[email] = {"id": user_id, "password": password}
        return UserProfile.model_validate(row)

    async def _issue(self, user_id: str, email: str) -> AuthSession:
        access, refresh = secrets.token_urlsafe(32), secrets.token_urlsafe(32)
        self._access[access] = user_id
        self._refresh[refresh] = user_id
        profile = await _load_profile(self.store, user_id, email)
        return AuthSession(
            user_id=user_id,
            email=email,
            access_token=access,
            refresh_token=refresh,
            expires_at=int(time.time()) + ACCESS_TOKEN_TTL,
            role=profile.role,
            must_change_password=profile.must_change_password,
        )

    async def sign_in(self, email, password):
        account = self._accounts.get(email.strip().lower())
        if not account or not secrets.compare_digest(account["password"], password):
            raise AuthenticationError()
        return await self._issue(account["id"], email.strip().lower())

    async def refresh(self, refresh_token):
        user_id = self._refresh.pop(refresh_token, None)
        if user_id is None:
            raise AuthenticationError("Sessão expirada. Faça login novamente.")
        email = next((e for e, a in self._accounts.items() if a["id"] == user_id), None)
        return await self._issue(user_id, email)

    async def sign_out(self, access_token):
        user_id = self._access.pop(access_token, None)
        if user_id:
            for token in [t for t, uid in self._refresh.items() if uid == user_id]:
                del self._refresh[token]

    async def sign_up(self, email, password, full_name):
        return await self.create_account(email, password, full_name)

    async def request_password_reset(self, email):
        self.reset_requests.append(email.strip().lower())

    async def get_user(self, access_token):
        user_id = self._access.get(access_token)
        if user_id is None:
            raise AuthenticationError()
        profile = await _load_profile(self.store, user_id)
        return CurrentUser(**profile.model_dump(include={"id", "email", "full_name", "role",
                                                         "must_change_password"}))

    async def set_password(self, user_id, password):
        for account in self._accounts.values():
            if account["id"] == user_id:
                account["password"] = password
                return
        raise AuthenticationError()

    async def close(self) -> None:
        pass


async def change_password(gateway: AuthGateway, store: RecordStore, user: CurrentUser,
                          new_password: str, confirm_password: str) -> None:
    """Sets a new password and clears the first-login flag."""
    if len(new_password) < 8:
        raise ValidationError("A senha deve ter pelo menos 8 caracteres.", field="new_password")
    if new_password != confirm_password:
        raise ValidationError("As senhas não coincidem.", field="confirm_password")
    await gateway.set_password(user.id, new_password)
    if user.must_change_password:
        await store.update(PROFILES, user.id, {"must_change_password": False})
    logger.info(f"🔑 Password changed for {user.id}")


# --- Session lifecycle ------------------------------------------------------

class SessionStorage(Protocol):
    def load(self) -> Optional[AuthSession]: ...

    def save(self, session: AuthSession) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStorage:
    def __init__(self):
        self._session: Optional[AuthSession] = None

    def load(self):
        return self._session

    def save(self, session):
        self._session = session

    def clear(self):
        self._session = None


class MappingSessionStorage:
    """Keeps the session under one key of a caller-owned mapping, e.g. a web UI's per-visitor state."""

    def __init__(self, state: MutableMapping, key: str = "auth_session"):
        self.state = state
        self.key = key

    def load(self):
        return self.state.get(self.key)

    def save(self, session):
        self.state[self.key] = session

    def clear(self):
        self.state.pop(self.key, None)


class SessionProvider:
    """
    Owns the current session of one client.

    Lifecycle is explicit: restore() on start, login()/logout() from the user,
    refresh() when the access token is about to expire. Listeners subscribed
    with subscribe() are told about every change.
    """

    def __init__(self, gateway: AuthGateway, storage: Optional[SessionStorage] = None):
        self.gateway = gateway
        self.storage = storage or MemorySessionStorage()
        self._session: Optional[AuthSession] = None
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Optional[AuthSession]):
        self._session = session
        if session is None:
            self.storage.clear()
        else:
            self.storage.save(session)
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                logger.error(f"❌ Session listener failed: {e}")

    async def restore(self) -> Optional[AuthSession]:
        """Loads the stored session, refreshing it when the access token expired."""
        stored = self.storage.load()
        if stored is None:
            self._set(None)
            return None
        if stored.expires_at and stored.expires_at <= int(time.time()):
            self._session = stored
            try:
                return await self.refresh()
            except CondoError as e:
                logger.warning(f"⚠️ Stored session could not be refreshed: {e.message}")
                self._set(None)
                return None
        self._set(stored)
        return stored

    async def login(self, email: str, password: str) -> AuthSession:
        session = await self.gateway.sign_in(email, password)
        logger.info(f"🔓 Logged in as {session.email}")
        self._set(session)
        return session

    async def refresh(self) -> AuthSession:
        if self._session is None:
            raise AuthenticationError("Nenhuma sessão ativa.")
        session = await self.gateway.refresh(self._session.refresh_token)
        self._set(session)
        return session

    async def logout(self) -> None:
        if self._session is not None:
            await self.gateway.sign_out(self._session.access_token)
            logger.info(f"🔒 Logged out {self._session.email}")
        self._set(None)
