"""View and auth state machine.

``transition`` is a pure function of ``(state, action)``. It returns the next
state snapshot together with the effects the controller has to perform.
Actions that are not allowed from the current view or role return the state
unchanged with no effects.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from marketplace.schemas.property import Property
from marketplace.schemas.session import (
    BookingConfirmed,
    CloseFeedback,
    CloseForm,
    Confirmation,
    SessionState,
)

FORM_VIEWS = ("submitForm", "editForm")

# Follow-up actions applied once a mutation and its reload have completed
_CLOSE_FORM = CloseForm()
_CLOSE_FEEDBACK = CloseFeedback()
_BOOKING_CONFIRMED = BookingConfirmed()


@dataclass(frozen=True)
class LoadData:
    """Refetch every session-scoped collection."""


@dataclass(frozen=True)
class Mutation:
    """Call ``PropertyApiClient.<call>(*args)``, reload, then apply ``then``.

    ``failure`` is the alert shown when the call fails; ``{error}`` is
    replaced with the collaborator's message.
    """

    call: str
    args: Tuple[Any, ...] = ()
    failure: str = "Could not complete the request."
    then: Tuple[Any, ...] = ()


Effect = LoadData | Mutation
Result = Tuple[SessionState, List[Effect]]


def _unchanged(state: SessionState) -> Result:
    return state, []


def _home(state: SessionState) -> str:
    return "admin" if state.user and state.user.is_admin else "list"


def _find_property(state: SessionState, property_id: int) -> Optional[Property]:
    data = state.data
    for collection in (data.properties, data.approved, data.pending, data.bookings):
        for prop in collection:
            if prop.id == property_id:
                return prop
    return None


def _goto(state: SessionState, view: str, **updates) -> SessionState:
    if view not in FORM_VIEWS:
        updates.setdefault("form_open", False)
    return state.model_copy(update={"view": view, **updates})


# --- Pre-login stages ---

def _open_login(state, action):
    if state.user is None and state.auth_stage == "intro":
        return state.model_copy(update={"auth_stage": "login"}), []
    return _unchanged(state)


def _show_register(state, action):
    if state.user is None and state.auth_stage == "login":
        return state.model_copy(update={"auth_stage": "register"}), []
    return _unchanged(state)


def _show_login(state, action):
    if state.user is None and state.auth_stage == "register":
        return state.model_copy(update={"auth_stage": "login"}), []
    return _unchanged(state)


def _session_started(state, action):
    started = state.model_copy(update={
        "user": action.user,
        "view": "list",
        "registration_success": False,
    })
    return started, [LoadData()]


def _registration_succeeded(state, action):
    return state.model_copy(update={"auth_stage": "login", "registration_success": True}), []


def _banner_shown(state, action):
    return state.model_copy(update={"registration_success": False}), []


def _logout(state, action):
    if state.user is None:
        return _unchanged(state)
    # Bumping the generation discards loads still in flight for the old user
    return SessionState(load_generation=state.load_generation + 1), []


# --- Navigation ---

def _view_details(state, action):
    prop = _find_property(state, action.property_id)
    if prop is None:
        return _unchanged(state)
    return _goto(state, "detail", selected_property=prop), []


def _view_pending(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    prop = _find_property(state, action.property_id)
    if prop is None:
        return _unchanged(state)
    return _goto(state, "adminDetail", selected_property=prop), []


def _back(state, action):
    if state.view == "detail":
        return _goto(state, "list", selected_property=None, payment_open=False), []
    if state.view == "adminDetail":
        return _goto(state, "admin", selected_property=None), []
    return _unchanged(state)


def _navigate(state, action):
    if action.view == "list" and state.view in ("list", "userDashboard", "admin"):
        return _goto(state, "list"), []
    if action.view == "admin" and state.view == "list" and state.user.is_admin:
        return _goto(state, "admin"), []
    if action.view == "userDashboard" and state.view == "list" and not state.user.is_admin:
        return _goto(state, "userDashboard"), []
    return _unchanged(state)


def _open_form(state, action):
    if state.view not in ("list", "admin"):
        return _unchanged(state)
    if action.property_id is None:
        return _goto(state, "submitForm", selected_property=None, form_open=True), []
    prop = _find_property(state, action.property_id)
    if prop is None:
        return _unchanged(state)
    return _goto(state, "editForm", selected_property=prop, form_open=True), []


def _close_form(state, action):
    if state.view not in FORM_VIEWS:
        return _unchanged(state)
    return _goto(state, _home(state), selected_property=None, form_open=False), []


def _save_property(state, action):
    if state.view not in FORM_VIEWS:
        return _unchanged(state)
    if state.view == "editForm" and state.selected_property is not None:
        mutation = Mutation(
            "update_property",
            (state.selected_property.id, action.data.model_dump(by_alias=True)),
            failure="Could not save the property.",
            then=(_CLOSE_FORM,),
        )
    else:
        status = "approved" if state.user.is_admin else "pending"
        mutation = Mutation(
            "add_property",
            (action.data, status, None),
            failure="Could not save the property.",
            then=(_CLOSE_FORM,),
        )
    return state, [mutation]


def _update_filters(state, action):
    return state.model_copy(update={"filters": action.filters}), []


# --- Moderation ---

def _confirm_first(state, action, prompt) -> Optional[Result]:
    if action.confirmed:
        return None
    pending = action.model_copy(update={"confirmed": True})
    return state.model_copy(update={"confirmation": Confirmation(prompt=prompt, action=pending)}), []


def _delete_property(state, action):
    asked = _confirm_first(state, action, "Are you sure you want to delete this property?")
    if asked:
        return asked
    return state, [Mutation("delete_property", (action.property_id,), failure="Could not delete the property.")]


def _approve_property(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    return state, [Mutation(
        "update_property", (action.property_id, {"status": "approved"}),
        failure="Could not approve the property.",
    )]


def _reject_property(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    return state, [Mutation("delete_property", (action.property_id,), failure="Could not reject the property.")]


def _update_user(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    asked = _confirm_first(state, action, "Are you sure you want to update this user's role?")
    if asked:
        return asked
    return state, [Mutation("update_user", (action.user_id, action.updates), failure="Error: {error}")]


def _delete_user(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    asked = _confirm_first(
        state, action, "Are you sure you want to delete this user? This action cannot be undone."
    )
    if asked:
        return asked
    return state, [Mutation("delete_user", (action.user_id,), failure="Error: {error}")]


def _accept_confirmation(state, action):
    if state.confirmation is None:
        return _unchanged(state)
    cleared = state.model_copy(update={"confirmation": None})
    return transition(cleared, state.confirmation.action)


def _dismiss_confirmation(state, action):
    return state.model_copy(update={"confirmation": None}), []


# --- Booking ---

def _proceed_to_payment(state, action):
    if state.view != "detail" or state.selected_property is None or state.user.is_admin:
        return _unchanged(state)
    return state.model_copy(update={"payment_open": True}), []


def _close_payment(state, action):
    return state.model_copy(update={"payment_open": False}), []


def _confirm_booking(state, action):
    # only the open payment modal for the selected property can book
    selected = state.selected_property
    if not state.payment_open or selected is None or selected.id != action.property_id:
        return _unchanged(state)
    fields = {"status": "booked", "bookedByUserId": state.user.id}
    closed = state.model_copy(update={"payment_open": False})
    return closed, [Mutation(
        "update_property", (action.property_id, fields),
        failure="Could not confirm the booking.",
        then=(_BOOKING_CONFIRMED,),
    )]


def _booking_confirmed(state, action):
    return _goto(state, "userDashboard"), []


# --- Feedback ---

def _open_feedback(state, action):
    return state.model_copy(update={"feedback_open": True}), []


def _close_feedback(state, action):
    return state.model_copy(update={"feedback_open": False}), []


def _submit_feedback(state, action):
    message = action.message.strip()
    if not message:
        return _unchanged(state)
    return state, [Mutation(
        "submit_feedback", (message, state.user),
        failure="Could not submit feedback.",
        then=(_CLOSE_FEEDBACK,),
    )]


def _delete_feedback(state, action):
    if not state.user.is_admin:
        return _unchanged(state)
    return state, [Mutation("delete_feedback", (action.feedback_id,), failure="Could not delete feedback.")]


# --- Loading ---

def _retry(state, action):
    return state, [LoadData()]


def _load_started(state, action):
    return state.model_copy(update={
        "loading": True,
        "error": None,
        "load_generation": state.load_generation + 1,
    }), []


def _load_succeeded(state, action):
    if action.generation != state.load_generation:
        return _unchanged(state)
    return state.model_copy(update={"data": action.data, "loading": False, "error": None}), []


def _load_failed(state, action):
    if action.generation != state.load_generation:
        return _unchanged(state)
    return state.model_copy(update={"loading": False, "error": action.message}), []


def _mutation_failed(state, action):
    return state.model_copy(update={"alert": action.message}), []


def _dismiss_alert(state, action):
    return state.model_copy(update={"alert": None}), []


_PUBLIC: Dict[str, Callable[[SessionState, Any], Result]] = {
    "open_login": _open_login,
    "show_register": _show_register,
    "show_login": _show_login,
    "session_started": _session_started,
    "registration_succeeded": _registration_succeeded,
    "banner_shown": _banner_shown,
}

_AUTHENTICATED: Dict[str, Callable[[SessionState, Any], Result]] = {
    "logout": _logout,
    "view_details": _view_details,
    "view_pending": _view_pending,
    "back": _back,
    "navigate": _navigate,
    "open_form": _open_form,
    "close_form": _close_form,
    "save_property": _save_property,
    "update_filters": _update_filters,
    "delete_property": _delete_property,
    "approve_property": _approve_property,
    "reject_property": _reject_property,
    "update_user": _update_user,
    "delete_user": _delete_user,
    "accept_confirmation": _accept_confirmation,
    "dismiss_confirmation": _dismiss_confirmation,
    "proceed_to_payment": _proceed_to_payment,
    "close_payment": _close_payment,
    "confirm_booking": _confirm_booking,
    "booking_confirmed": _booking_confirmed,
    "open_feedback": _open_feedback,
    "close_feedback": _close_feedback,
    "submit_feedback": _submit_feedback,
    "delete_feedback": _delete_feedback,
    "retry": _retry,
    "load_started": _load_started,
    "load_succeeded": _load_succeeded,
    "load_failed": _load_failed,
    "mutation_failed": _mutation_failed,
    "dismiss_alert": _dismiss_alert,
}


def transition(state: SessionState, action) -> Result:
    """Apply ``action`` to ``state``; return the next state and its effects."""
    handler = _PUBLIC.get(action.type)
    if handler is not None:
        return handler(state, action)
    handler = _AUTHENTICATED.get(action.type)
    if handler is None or state.user is None:
        return _unchanged(state)
    return handler(state, action)

