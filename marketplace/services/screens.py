from marketplace.schemas.property import PROPERTY_TYPES
from marketplace.schemas.session import FormModal, Screen, SessionState
from marketplace.services.filters import featured_listings, filter_listings
from marketplace.services.transitions import FORM_VIEWS


def _listing_screen(state: SessionState) -> dict:
    props = state.data.properties
    return {
        "kind": "list",
        "filters": state.filters,
        "property_types": PROPERTY_TYPES,
        "featured": featured_listings(props),
        "listings": filter_listings(props, state.filters),
        "pending_alert": state.data.stats.pending_count if state.user.is_admin else None,
    }


def _view_screen(state: SessionState) -> dict:
    data = state.data
    if state.view in ("detail", "adminDetail") and state.selected_property is not None:
        return {"kind": state.view, "selected_property": state.selected_property}
    if state.view == "admin":
        return {
            "kind": "admin",
            "stats": data.stats,
            "pending": data.pending,
            "approved": data.approved,
            "users": data.users,
            "feedback": data.feedback,
        }
    if state.view == "userDashboard":
        return {"kind": "userDashboard", "bookings": data.bookings}
    # list, and the forms which open over the listing
    return _listing_screen(state)


def _overlays(state: SessionState) -> dict:
    overlays = {
        "feedback_form_open": state.feedback_open,
        "confirmation": state.confirmation,
        "alert": state.alert,
    }
    if state.view in FORM_VIEWS and state.form_open:
        title = "Edit Property" if state.view == "editForm" else "List Your Property"
        overlays["form"] = FormModal(title=title, initial=state.selected_property)
    if state.payment_open and state.selected_property is not None:
        overlays["payment"] = state.selected_property
    return overlays


def render_screen(state: SessionState) -> Screen:
    """Describe what is on screen for this state. Pure; never mutates."""
    if state.user is None:
        if state.auth_stage == "login":
            return Screen(kind="login", registration_success=state.registration_success)
        return Screen(kind=state.auth_stage)

    if state.loading:
        return Screen(kind="loading", user=state.user)
    if state.error:
        return Screen(kind="error", user=state.user, error=state.error, can_retry=True)

    return Screen(user=state.user, **_view_screen(state), **_overlays(state))
