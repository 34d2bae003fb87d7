from httpx import AsyncClient, HTTPError
from pydantic import ValidationError
from marketplace.config import settings
from marketplace.exceptions import ApiError, AuthorizationError, NotFoundError
from marketplace.schemas.admin import AdminStats, Feedback, User, UserUpdateRequest
from marketplace.schemas.property import Property, PropertyDraft
from structlog import get_logger

logger = get_logger()

_ERRORS_BY_STATUS = {
    401: AuthorizationError,
    403: AuthorizationError,
    404: NotFoundError,
}


def _api_root(base: str) -> str:
    # Accept bases configured with or without the '/api/v1' suffix
    base = base.rstrip("/")
    return base if base.endswith("/api/v1") else f"{base}/api/v1"


def _unwrap_list(payload) -> list:
    """Accept a bare list or the usual {data|items|results: [...]} wrappers."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items", "results"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ApiError("Unexpected list payload")


def _normalize_user(u: dict) -> dict:
    """Map common upstream id/role spellings onto our User schema."""
    if not isinstance(u, dict):
        return u
    uid = u.get("id") if u.get("id") is not None else u.get("_id") or u.get("user_id")
    if uid is not None:
        u["id"] = uid
    if "role" not in u and "type" in u:
        u["role"] = u.pop("type")
    if isinstance(u.get("role"), str):
        u["role"] = u["role"].lower()
    return u


def _normalize_feedback(f: dict) -> dict:
    if not isinstance(f, dict):
        return f
    fid = f.get("_id") or f.get("id")
    if fid is not None:
        f["_id"] = str(fid)
        f.pop("id", None)
    return f


def _error_detail(resp) -> str:
    try:
        err = resp.json()
    except Exception:
        return resp.text or "Upstream error"
    if isinstance(err, dict):
        return str(err.get("detail") or err.get("message") or err)
    return str(err)


class PropertyApiClient:
    """Data API collaborator. Each call opens its own AsyncClient."""

    def __init__(self, base_url: str, token: str | None = None, timeout: float = 15.0, transport=None):
        self._root = _api_root(base_url)
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls):
        return cls(settings.PROPERTY_API_URL, token=settings.API_TOKEN, timeout=settings.REQUEST_TIMEOUT)

    async def _request(self, method: str, path: str, **kwargs):
        url = f"{self._root}{path}"
        try:
            async with AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.request(method, url, headers=self._headers, **kwargs)
        except HTTPError as e:
            logger.error("Data API unreachable", method=method, url=url, error=str(e))
            raise ApiError(f"Data API unreachable: {e}") from e
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.warning("Data API error", method=method, url=url, status_code=resp.status_code, error=detail)
            raise _ERRORS_BY_STATUS.get(resp.status_code, ApiError)(detail, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Malformed response from {url}", resp.status_code) from e

    def _parse(self, model, payload):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.error("Unexpected payload shape", model=model.__name__, error=str(e))
            raise ApiError(f"Unexpected {model.__name__} payload") from e

    def _parse_many(self, model, payload, normalize=None):
        items = _unwrap_list(payload)
        if normalize:
            items = [normalize(item) for item in items]
        return [self._parse(model, item) for item in items]

    async def get_properties(self, status: str | None = None) -> list[Property]:
        params = {"status": status} if status else None
        data = await self._request("GET", "/properties", params=params)
        return self._parse_many(Property, data)

    async def get_properties_by_user_id(self, user_id: int) -> list[Property]:
        data = await self._request("GET", "/properties", params={"bookedByUserId": user_id})
        return self._parse_many(Property, data)

    async def get_admin_stats(self) -> AdminStats:
        data = await self._request("GET", "/admin/stats")
        if data is None:
            raise ApiError("Empty admin stats payload")
        return self._parse(AdminStats, data)

    async def get_users(self) -> list[User]:
        data = await self._request("GET", "/users")
        return self._parse_many(User, data, normalize=_normalize_user)

    async def get_feedback(self) -> list[Feedback]:
        data = await self._request("GET", "/feedback")
        return self._parse_many(Feedback, data, normalize=_normalize_feedback)

    async def add_property(self, draft: PropertyDraft, status: str, booked_by_user_id: int | None = None) -> Property | None:
        payload = {**draft.model_dump(by_alias=True), "status": status, "bookedByUserId": booked_by_user_id}
        data = await self._request("POST", "/properties", json=payload)
        logger.info("Added property", status=status)
        if data is None:
            return None
        return self._parse(Property, data)

    async def update_property(self, property_id: int, fields: dict) -> Property | None:
        data = await self._request("PATCH", f"/properties/{property_id}", json=fields)
        logger.info("Updated property", property_id=property_id, fields=sorted(fields))
        if data is None:
            return None
        return self._parse(Property, data)

    async def delete_property(self, property_id: int) -> None:
        await self._request("DELETE", f"/properties/{property_id}")
        logger.info("Deleted property", property_id=property_id)

    async def update_user(self, user_id: int, updates: UserUpdateRequest) -> User | None:
        data = await self._request(
            "PATCH", f"/users/{user_id}", json=updates.model_dump(by_alias=True, exclude_unset=True)
        )
        logger.info("Updated user", user_id=user_id)
        if data is None:
            return None
        return self._parse(User, _normalize_user(data))

    async def delete_user(self, user_id: int) -> None:
        await self._request("DELETE", f"/users/{user_id}")
        logger.info("Deleted user", user_id=user_id)

    async def submit_feedback(self, message: str, author: User) -> Feedback | None:
        payload = {"message": message, "userId": author.id, "userName": author.name}
        data = await self._request("POST", "/feedback", json=payload)
        logger.info("Submitted feedback", user_id=author.id)
        if data is None:
            return None
        return self._parse(Feedback, _normalize_feedback(data))

    async def delete_feedback(self, feedback_id: str) -> None:
        await self._request("DELETE", f"/feedback/{feedback_id}")
        logger.info("Deleted feedback", feedback_id=feedback_id)
