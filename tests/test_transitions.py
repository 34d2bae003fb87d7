import itertools
from marketplace.schemas.admin import UserUpdateRequest
from marketplace.schemas.property import PropertyDraft
from marketplace.schemas.session import (
    AcceptConfirmation,
    Back,
    BookingConfirmed,
    CloseForm,
    ConfirmBooking,
    DeleteFeedback,
    DeleteProperty,
    DeleteUser,
    DismissConfirmation,
    Filter,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    Logout,
    Navigate,
    OpenForm,
    OpenLogin,
    ProceedToPayment,
    SaveProperty,
    SessionData,
    SessionStarted,
    SessionState,
    ShowLogin,
    ShowRegister,
    SubmitFeedback,
    UpdateFilters,
    UpdateUser,
    ViewDetails,
    ViewPending,
    ApproveProperty,
    RejectProperty,
)
from marketplace.services.transitions import LoadData, Mutation, transition


def _logged_in(user, props):
    return SessionState(user=user, data=SessionData(properties=props, approved=props, pending=props))


def _draft():
    return PropertyDraft(address="1 Bay Rd", city="Austin", price=250000, type="Cottage")


def test_pre_login_stages():
    state = SessionState()
    assert state.auth_stage == "intro"
    state, _ = transition(state, ShowRegister())
    assert state.auth_stage == "intro"
    state, _ = transition(state, OpenLogin())
    assert state.auth_stage == "login"
    state, _ = transition(state, ShowRegister())
    assert state.auth_stage == "register"
    state, _ = transition(state, ShowLogin())
    assert state.auth_stage == "login"


def test_session_start_lands_on_list_and_loads(member):
    state = SessionState(auth_stage="login", registration_success=True)
    state, effects = transition(state, SessionStarted(user=member))
    assert state.user == member
    assert state.view == "list"
    assert state.registration_success is False
    assert effects == [LoadData()]


def test_authenticated_actions_are_ignored_without_user(make_property):
    state = SessionState(data=SessionData(properties=[make_property(1)]))
    for action in (ViewDetails(property_id=1), OpenForm(), Navigate(view="admin"), Logout()):
        assert transition(state, action) == (state, [])


def test_view_details_and_back(member, make_property):
    state = _logged_in(member, [make_property(1)])
    state, _ = transition(state, ViewDetails(property_id=1))
    assert state.view == "detail"
    assert state.selected_property.id == 1
    state, _ = transition(state, Back())
    assert state.view == "list"
    assert state.selected_property is None


def test_view_details_of_unknown_property_is_ignored(member):
    state = _logged_in(member, [])
    assert transition(state, ViewDetails(property_id=42)) == (state, [])


def test_admin_pending_detail_returns_to_dashboard(admin, make_property):
    state = _logged_in(admin, [make_property(2, status="pending")])
    state, _ = transition(state, Navigate(view="admin"))
    assert state.view == "admin"
    state, _ = transition(state, ViewPending(property_id=2))
    assert state.view == "adminDetail"
    state, _ = transition(state, Back())
    assert state.view == "admin"
    assert state.selected_property is None


def test_user_role_never_reaches_admin_views(member, make_property):
    start = _logged_in(member, [make_property(1), make_property(2, status="pending")])
    actions = [
        Navigate(view="admin"), ViewPending(property_id=2), ViewDetails(property_id=1),
        Back(), OpenForm(), OpenForm(property_id=1), CloseForm(), Navigate(view="list"),
        Navigate(view="userDashboard"), BookingConfirmed(),
    ]
    for sequence in itertools.permutations(actions, 4):
        state = start
        for action in sequence:
            state, _ = transition(state, action)
            assert state.view not in ("admin", "adminDetail")


def test_open_form_for_new_listing_has_no_selection(member, make_property):
    state = _logged_in(member, [make_property(1)])
    state, _ = transition(state, OpenForm())
    assert state.view == "submitForm"
    assert state.selected_property is None
    assert state.form_open is True


def test_open_form_only_from_list_or_admin(member, make_property):
    state = _logged_in(member, [make_property(1)])
    state, _ = transition(state, ViewDetails(property_id=1))
    assert transition(state, OpenForm()) == (state, [])


def test_close_form_clears_selection_and_returns_home(member, admin, make_property):
    for user, home in ((member, "list"), (admin, "admin")):
        state = _logged_in(user, [make_property(1)])
        if user.is_admin:
            state, _ = transition(state, Navigate(view="admin"))
        state, _ = transition(state, OpenForm(property_id=1))
        assert state.view == "editForm"
        assert state.selected_property.id == 1
        state, _ = transition(state, CloseForm())
        assert state.view == home
        assert state.selected_property is None
        assert state.form_open is False


def test_save_in_edit_form_updates_selected_property(admin, make_property):
    state = _logged_in(admin, [make_property(1)])
    state, _ = transition(state, OpenForm(property_id=1))
    same, effects = transition(state, SaveProperty(data=_draft()))
    assert same == state
    (mutation,) = effects
    assert mutation.call == "update_property"
    assert mutation.args[0] == 1
    assert mutation.args[1]["type"] == "Cottage"
    assert mutation.then == (CloseForm(),)


def test_save_new_listing_status_depends_on_role(member, admin):
    for user, status in ((member, "pending"), (admin, "approved")):
        state = _logged_in(user, [])
        state, _ = transition(state, OpenForm())
        _, (mutation,) = transition(state, SaveProperty(data=_draft()))
        assert mutation.call == "add_property"
        assert mutation.args[1:] == (status, None)


def test_delete_property_asks_before_deleting(admin, make_property):
    state = _logged_in(admin, [make_property(1)])
    asked, effects = transition(state, DeleteProperty(property_id=1))
    assert effects == []
    assert asked.confirmation.prompt.startswith("Are you sure")

    dismissed, effects = transition(asked, DismissConfirmation())
    assert dismissed.confirmation is None
    assert effects == []

    accepted, effects = transition(asked, AcceptConfirmation())
    assert accepted.confirmation is None
    assert effects == [Mutation("delete_property", (1,), failure="Could not delete the property.")]


def test_confirmed_user_update_runs_directly(admin):
    state = _logged_in(admin, [])
    updates = UserUpdateRequest(role="admin")
    _, (mutation,) = transition(state, UpdateUser(user_id=5, updates=updates, confirmed=True))
    assert mutation.call == "update_user"
    assert mutation.args == (5, updates)


def test_admin_only_operations_ignored_for_user(member):
    state = _logged_in(member, [])
    for action in (
        ApproveProperty(property_id=1),
        RejectProperty(property_id=1),
        DeleteUser(user_id=1, confirmed=True),
        UpdateUser(user_id=1, updates=UserUpdateRequest(name="x")),
        DeleteFeedback(feedback_id="f1"),
    ):
        assert transition(state, action) == (state, [])


def test_approve_and_reject_mutations(admin):
    state = _logged_in(admin, [])
    _, (approve,) = transition(state, ApproveProperty(property_id=3))
    assert (approve.call, approve.args) == ("update_property", (3, {"status": "approved"}))
    _, (reject,) = transition(state, RejectProperty(property_id=3))
    assert (reject.call, reject.args) == ("delete_property", (3,))


def test_confirm_booking_books_for_acting_user(member, make_property):
    state = _logged_in(member, [make_property(1)])
    state, _ = transition(state, ViewDetails(property_id=1))
    state, _ = transition(state, ProceedToPayment())
    assert state.payment_open is True
    state, (mutation,) = transition(state, ConfirmBooking(property_id=1))
    assert state.payment_open is False
    assert mutation.args == (1, {"status": "booked", "bookedByUserId": member.id})
    state, _ = transition(state, mutation.then[0])
    assert state.view == "userDashboard"


def test_booking_requires_open_payment_for_selected_property(member, admin, make_property):
    state = _logged_in(member, [make_property(1), make_property(2)])
    assert transition(state, ConfirmBooking(property_id=1)) == (state, [])

    state, _ = transition(state, ViewDetails(property_id=1))
    assert transition(state, ConfirmBooking(property_id=1)) == (state, [])

    state, _ = transition(state, ProceedToPayment())
    assert transition(state, ConfirmBooking(property_id=2)) == (state, [])

    admin_state = _logged_in(admin, [make_property(1)])
    admin_state, _ = transition(admin_state, ViewDetails(property_id=1))
    admin_state, _ = transition(admin_state, ProceedToPayment())
    assert admin_state.payment_open is False
    assert transition(admin_state, ConfirmBooking(property_id=1)) == (admin_state, [])


def test_blank_feedback_is_ignored(member):
    state = _logged_in(member, [])
    assert transition(state, SubmitFeedback(message="   ")) == (state, [])
    _, (mutation,) = transition(state, SubmitFeedback(message=" great site "))
    assert mutation.args == ("great site", member)


def test_logout_resets_everything(admin, make_property):
    state = _logged_in(admin, [make_property(1)])
    state, _ = transition(state, UpdateFilters(filters=Filter(search_term="x")))
    state, _ = transition(state, ViewDetails(property_id=1))
    state, _ = transition(state, Logout())
    assert state.user is None
    assert state.auth_stage == "intro"
    assert state.view == "list"
    assert state.selected_property is None
    assert state.filters == Filter()
    assert state.data == SessionData()
    assert state.load_generation == 1


def test_stale_load_results_are_discarded(member, make_property):
    state = _logged_in(member, [])
    state, _ = transition(state, LoadStarted())
    first = state.load_generation
    state, _ = transition(state, LoadStarted())
    fresh = SessionData(properties=[make_property(2)])
    stale = SessionData(properties=[make_property(1)])

    state, _ = transition(state, LoadSucceeded(generation=state.load_generation, data=fresh))
    assert state.loading is False
    after_stale, _ = transition(state, LoadSucceeded(generation=first, data=stale))
    assert after_stale.data == fresh
    after_failure, _ = transition(state, LoadFailed(generation=first, message="boom"))
    assert after_failure.error is None


def test_load_failure_sets_error(member):
    state = _logged_in(member, [])
    state, _ = transition(state, LoadStarted())
    state, _ = transition(state, LoadFailed(generation=state.load_generation, message="offline"))
    assert state.loading is False
    assert state.error == "offline"
