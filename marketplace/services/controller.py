import asyncio

from marketplace.exceptions import ApiError, LoadFailure, MutationFailure
from marketplace.schemas.admin import User
from marketplace.schemas.session import (
    BannerShown,
    Credentials,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    MutationFailed,
    Registration,
    RegistrationSucceeded,
    Screen,
    SessionData,
    SessionStarted,
    SessionState,
)
from marketplace.services.api import PropertyApiClient
from marketplace.services.auth import AuthClient
from marketplace.services.filters import available_properties
from marketplace.services.screens import render_screen
from marketplace.services.transitions import LoadData, Mutation, transition
from structlog import get_logger

logger = get_logger()


async def gather_all_or_nothing(*coros):
    """Run ``coros`` concurrently. On the first failure cancel the rest and re-raise it."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SessionController:
    """Holds one browser session's state and runs the effects of its actions.

    Collaborator failures never escape ``dispatch``: read failures become the
    session's load error, write failures become an alert. Login and register
    raise ``AuthFailure`` to the caller and leave the state untouched.
    """

    def __init__(self, api: PropertyApiClient, auth: AuthClient, state: SessionState | None = None):
        self.api = api
        self.auth = auth
        self.state = state or SessionState()

    def screen(self) -> Screen:
        screen = render_screen(self.state)
        # the registration banner is shown exactly once
        if screen.kind == "login" and screen.registration_success:
            self.state, _ = transition(self.state, BannerShown())
        return screen

    async def dispatch(self, action) -> Screen:
        before = self.state
        self.state, effects = transition(self.state, action)
        if self.state is before and not effects:
            logger.info("Ignored action", action=action.type, view=before.view, stage=before.auth_stage)
        await self._run(effects)
        return self.screen()

    async def _run(self, effects):
        for effect in effects:
            if isinstance(effect, LoadData):
                await self.load_data()
            elif isinstance(effect, Mutation):
                await self._mutate(effect)

    async def login(self, credentials: Credentials) -> Screen:
        user = await self.auth.login(credentials)
        return await self.dispatch(SessionStarted(user=user))

    async def register(self, registration: Registration) -> Screen:
        await self.auth.register(registration)
        return await self.dispatch(RegistrationSucceeded())

    async def load_data(self):
        user = self.state.user
        if user is None:
            return
        self.state, _ = transition(self.state, LoadStarted())
        generation = self.state.load_generation
        try:
            data = await self._fetch(user)
        except LoadFailure as e:
            logger.error("Failed to load session data", user_id=user.id, generation=generation, error=str(e))
            self.state, _ = transition(self.state, LoadFailed(generation=generation, message=str(e)))
            return
        if generation != self.state.load_generation:
            logger.warning("Discarding stale load", generation=generation, current=self.state.load_generation)
            return
        self.state, _ = transition(self.state, LoadSucceeded(generation=generation, data=data))
        logger.info("Loaded session data", user_id=user.id, role=user.role, generation=generation)

    async def _fetch(self, user: User) -> SessionData:
        try:
            properties = available_properties(await self.api.get_properties())
            if user.is_admin:
                stats, pending, approved, users, feedback = await gather_all_or_nothing(
                    self.api.get_admin_stats(),
                    self.api.get_properties("pending"),
                    self.api.get_properties("approved"),
                    self.api.get_users(),
                    self.api.get_feedback(),
                )
                return SessionData(
                    properties=properties,
                    stats=stats,
                    pending=pending,
                    approved=approved,
                    users=users,
                    feedback=feedback,
                )
            bookings = await self.api.get_properties_by_user_id(user.id)
            return SessionData(properties=properties, bookings=bookings)
        except ApiError as e:
            raise LoadFailure(e.detail or "Failed to load data.") from e

    async def _call(self, mutation: Mutation):
        try:
            return await getattr(self.api, mutation.call)(*mutation.args)
        except ApiError as e:
            raise MutationFailure(mutation.failure.format(error=e.detail)) from e

    async def _mutate(self, mutation: Mutation):
        try:
            await self._call(mutation)
        except MutationFailure as e:
            logger.error("Mutation failed", call=mutation.call, error=str(e.__cause__))
            self.state, _ = transition(self.state, MutationFailed(message=str(e)))
            return
        await self.load_data()
        for follow_up in mutation.then:
            self.state, effects = transition(self.state, follow_up)
            await self._run(effects)
