import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, List, Literal, Optional, Union

from marketplace.schemas.admin import AdminStats, Feedback, User, UserUpdateRequest
from marketplace.schemas.property import PROPERTY_TYPES, Property, PropertyDraft

View = Literal["list", "detail", "admin", "submitForm", "editForm", "adminDetail", "userDashboard"]
AuthStage = Literal["intro", "login", "register"]
ScreenKind = Literal[
    "intro", "login", "register", "loading", "error",
    "list", "detail", "admin", "adminDetail", "userDashboard",
]


class Filter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    search_term: str = Field(default="", alias="searchTerm")
    min_price: str = Field(default="", alias="minPrice")
    max_price: str = Field(default="", alias="maxPrice")
    type: str = "all"
    listing_type: Literal["all", "sale", "rent"] = Field(default="all", alias="listingType")

    @field_validator("min_price", "max_price")
    @classmethod
    def _numeric_or_empty(cls, value: str) -> str:
        value = value.strip()
        if value:
            try:
                bound = float(value)
            except ValueError:
                raise ValueError("price bounds must be numeric") from None
            if not math.isfinite(bound):
                raise ValueError("price bounds must be finite")
        return value

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value != "all" and value not in PROPERTY_TYPES:
            raise ValueError(f"type must be 'all' or one of {', '.join(PROPERTY_TYPES)}")
        return value


class Credentials(BaseModel):
    username: str
    password: str


class Registration(BaseModel):
    name: str
    username: str
    password: str


# --- Actions accepted from clients ---

class OpenLogin(BaseModel):
    type: Literal["open_login"] = "open_login"


class ShowRegister(BaseModel):
    type: Literal["show_register"] = "show_register"


class ShowLogin(BaseModel):
    type: Literal["show_login"] = "show_login"


class Logout(BaseModel):
    type: Literal["logout"] = "logout"


class ViewDetails(BaseModel):
    type: Literal["view_details"] = "view_details"
    property_id: int


class ViewPending(BaseModel):
    type: Literal["view_pending"] = "view_pending"
    property_id: int


class Back(BaseModel):
    type: Literal["back"] = "back"


class Navigate(BaseModel):
    type: Literal["navigate"] = "navigate"
    view: Literal["list", "admin", "userDashboard"]


class OpenForm(BaseModel):
    type: Literal["open_form"] = "open_form"
    property_id: Optional[int] = None


class CloseForm(BaseModel):
    type: Literal["close_form"] = "close_form"


class SaveProperty(BaseModel):
    type: Literal["save_property"] = "save_property"
    data: PropertyDraft


class UpdateFilters(BaseModel):
    type: Literal["update_filters"] = "update_filters"
    filters: Filter


class DeleteProperty(BaseModel):
    type: Literal["delete_property"] = "delete_property"
    property_id: int
    confirmed: bool = False


class ApproveProperty(BaseModel):
    type: Literal["approve_property"] = "approve_property"
    property_id: int


class RejectProperty(BaseModel):
    type: Literal["reject_property"] = "reject_property"
    property_id: int


class ProceedToPayment(BaseModel):
    type: Literal["proceed_to_payment"] = "proceed_to_payment"


class ClosePayment(BaseModel):
    type: Literal["close_payment"] = "close_payment"


class ConfirmBooking(BaseModel):
    type: Literal["confirm_booking"] = "confirm_booking"
    property_id: int


class UpdateUser(BaseModel):
    type: Literal["update_user"] = "update_user"
    user_id: int
    updates: UserUpdateRequest
    confirmed: bool = False


class DeleteUser(BaseModel):
    type: Literal["delete_user"] = "delete_user"
    user_id: int
    confirmed: bool = False


class AcceptConfirmation(BaseModel):
    type: Literal["accept_confirmation"] = "accept_confirmation"


class DismissConfirmation(BaseModel):
    type: Literal["dismiss_confirmation"] = "dismiss_confirmation"


class OpenFeedback(BaseModel):
    type: Literal["open_feedback"] = "open_feedback"


class CloseFeedback(BaseModel):
    type: Literal["close_feedback"] = "close_feedback"


class SubmitFeedback(BaseModel):
    type: Literal["submit_feedback"] = "submit_feedback"
    message: str


class DeleteFeedback(BaseModel):
    type: Literal["delete_feedback"] = "delete_feedback"
    feedback_id: str


class Retry(BaseModel):
    type: Literal["retry"] = "retry"


class DismissAlert(BaseModel):
    type: Literal["dismiss_alert"] = "dismiss_alert"


ClientAction = Union[
    OpenLogin, ShowRegister, ShowLogin, Logout,
    ViewDetails, ViewPending, Back, Navigate,
    OpenForm, CloseForm, SaveProperty, UpdateFilters,
    DeleteProperty, ApproveProperty, RejectProperty,
    ProceedToPayment, ClosePayment, ConfirmBooking,
    UpdateUser, DeleteUser, AcceptConfirmation, DismissConfirmation,
    OpenFeedback, CloseFeedback, SubmitFeedback, DeleteFeedback,
    Retry, DismissAlert,
]

ConfirmableAction = Annotated[
    Union[DeleteProperty, UpdateUser, DeleteUser],
    Field(discriminator="type"),
]


# --- State ---

class SessionData(BaseModel):
    """Session-scoped collections, replaced wholesale on every load."""

    model_config = ConfigDict(frozen=True)

    properties: List[Property] = []
    pending: List[Property] = []
    approved: List[Property] = []
    users: List[User] = []
    feedback: List[Feedback] = []
    bookings: List[Property] = []
    stats: AdminStats = Field(default_factory=AdminStats)


class Confirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    action: ConfirmableAction


class SessionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    auth_stage: AuthStage = "intro"
    registration_success: bool = False
    view: View = "list"
    selected_property: Optional[Property] = None
    form_open: bool = False
    payment_open: bool = False
    feedback_open: bool = False
    filters: Filter = Field(default_factory=Filter)
    loading: bool = False
    error: Optional[str] = None
    load_generation: int = 0
    data: SessionData = Field(default_factory=SessionData)
    confirmation: Optional[Confirmation] = None
    alert: Optional[str] = None


# --- Outcomes fed back by the controller ---

class SessionStarted(BaseModel):
    type: Literal["session_started"] = "session_started"
    user: User


class RegistrationSucceeded(BaseModel):
    type: Literal["registration_succeeded"] = "registration_succeeded"


class BannerShown(BaseModel):
    type: Literal["banner_shown"] = "banner_shown"


class LoadStarted(BaseModel):
    type: Literal["load_started"] = "load_started"


class LoadSucceeded(BaseModel):
    type: Literal["load_succeeded"] = "load_succeeded"
    generation: int
    data: SessionData


class LoadFailed(BaseModel):
    type: Literal["load_failed"] = "load_failed"
    generation: int
    message: str


class BookingConfirmed(BaseModel):
    type: Literal["booking_confirmed"] = "booking_confirmed"


class MutationFailed(BaseModel):
    type: Literal["mutation_failed"] = "mutation_failed"
    message: str


# --- Screen descriptors ---

class FormModal(BaseModel):
    title: str
    initial: Optional[Property] = None


class Screen(BaseModel):
    kind: ScreenKind
    user: Optional[User] = None
    registration_success: bool = False
    error: Optional[str] = None
    can_retry: bool = False
    selected_property: Optional[Property] = None
    filters: Optional[Filter] = None
    property_types: List[str] = []
    featured: List[Property] = []
    listings: List[Property] = []
    pending_alert: Optional[int] = None
    stats: Optional[AdminStats] = None
    pending: List[Property] = []
    approved: List[Property] = []
    users: List[User] = []
    feedback: List[Feedback] = []
    bookings: List[Property] = []
    form: Optional[FormModal] = None
    payment: Optional[Property] = None
    feedback_form_open: bool = False
    confirmation: Optional[Confirmation] = None
    alert: Optional[str] = None


class SessionCreated(BaseModel):
    session_id: str
    screen: Screen
