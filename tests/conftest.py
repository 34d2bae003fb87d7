import pytest
from unittest.mock import AsyncMock
from marketplace.schemas.admin import AdminStats, User
from marketplace.schemas.property import Property
from marketplace.services.api import PropertyApiClient
from marketplace.services.auth import AuthClient


def build_property(id, **overrides):
    fields = {
        "id": id,
        "address": f"{id} Main Street",
        "city": "Austin",
        "price": 500000,
        "type": "Villa",
        "listing_type": "sale",
        "status": "approved",
    }
    fields.update(overrides)
    return Property(**fields)


@pytest.fixture
def make_property():
    return build_property


@pytest.fixture
def admin():
    return User(id=1, role="admin", name="Ada", username="ada")


@pytest.fixture
def member():
    return User(id=7, role="user", name="Bo", username="bo")


@pytest.fixture
def fake_api():
    """Data API double: every read succeeds with a small catalogue."""
    api = AsyncMock(spec=PropertyApiClient)
    catalogue = [
        build_property(1),
        build_property(2, status="pending"),
        build_property(3, status="booked", booked_by_user_id=7),
        build_property(4, listing_type="rent", rent_price=1500, city="Dallas"),
    ]

    def get_properties(status=None):
        if status is None:
            return list(catalogue)
        return [p for p in catalogue if p.status == status]

    api.get_properties.side_effect = get_properties
    api.get_properties_by_user_id.return_value = [catalogue[2]]
    api.get_admin_stats.return_value = AdminStats(total_value=501500, approved_count=2, pending_count=1, user_count=2)
    api.get_users.return_value = []
    api.get_feedback.return_value = []
    return api


@pytest.fixture
def fake_auth(admin):
    auth = AsyncMock(spec=AuthClient)
    auth.login.return_value = admin
    auth.register.return_value = User(id=9, role="user", name="Cy", username="cy")
    return auth
