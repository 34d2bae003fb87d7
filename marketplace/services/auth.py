from httpx import AsyncClient, HTTPError
from pydantic import ValidationError
from marketplace.config import settings
from marketplace.exceptions import ApiError, DuplicateUser, InvalidCredentials, InvalidRegistration
from marketplace.schemas.admin import User
from marketplace.schemas.session import Credentials, Registration
from marketplace.services.api import _api_root, _error_detail, _normalize_user
from structlog import get_logger

logger = get_logger()


class AuthClient:
    """Login / registration collaborator."""

    def __init__(self, base_url: str, timeout: float = 15.0, transport=None):
        self._root = _api_root(base_url)
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls):
        return cls(settings.AUTH_API_URL, timeout=settings.REQUEST_TIMEOUT)

    async def _post(self, path: str, body: dict):
        url = f"{self._root}{path}"
        try:
            async with AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body)
                logger.info("Auth upstream response", upstream=url, status_code=resp.status_code)
                # Some auth services only take form-encoded bodies
                if resp.status_code == 415:
                    resp = await client.post(
                        url, data=body,
                        headers={"Content-Type": "application/x-www-form-urlencoded"},
                    )
                    logger.info("Auth retried with form-encoded", upstream=url, status_code=resp.status_code)
        except HTTPError as e:
            logger.error("Auth service unreachable", upstream=url, error=str(e))
            raise ApiError(f"Auth service unreachable: {e}") from e
        return resp

    def _user_from(self, resp) -> User:
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError("Malformed auth response", resp.status_code) from e
        # Accept either {user: {...}} or a flat user object
        user = data.get("user", data) if isinstance(data, dict) else data
        try:
            return User.model_validate(_normalize_user(user))
        except ValidationError as e:
            raise ApiError("Unexpected user payload from auth service", resp.status_code) from e

    async def login(self, credentials: Credentials) -> User:
        resp = await self._post("/auth/login", credentials.model_dump())
        if resp.status_code in (400, 401, 403, 404):
            logger.warning("Login refused", username=credentials.username, status_code=resp.status_code)
            raise InvalidCredentials(_error_detail(resp) if resp.status_code != 404 else "Invalid username or password")
        if resp.status_code >= 400:
            raise ApiError(_error_detail(resp), resp.status_code)
        user = self._user_from(resp)
        logger.info("User logged in", user_id=user.id, role=user.role)
        return user

    async def register(self, registration: Registration) -> User:
        resp = await self._post("/auth/register", registration.model_dump())
        if resp.status_code == 409:
            logger.warning("Registration refused, duplicate user", username=registration.username)
            raise DuplicateUser(_error_detail(resp))
        if resp.status_code in (400, 422):
            logger.warning("Registration refused, invalid data", username=registration.username)
            raise InvalidRegistration(_error_detail(resp))
        if resp.status_code >= 400:
            raise ApiError(_error_detail(resp), resp.status_code)
        user = self._user_from(resp)
        logger.info("User registered", user_id=user.id)
        return user
