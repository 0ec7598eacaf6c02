import enum
import logging
from typing import Callable, List, Optional

from app.client.gateway import ImageFile, ReportsGateway
from app.client.outcomes import Failure, Unauthorized, is_failure
from app.schemas import SessionUser

logger = logging.getLogger(__name__)


class SessionEvent(str, enum.Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"
    USER_UPDATED = "user_updated"


Listener = Callable[[SessionEvent, Optional[SessionUser]], None]


class SessionContext:
    """
    Holds the current session user for every component that needs it.

    Initialised once with ``initialize()``. After that it only changes on
    explicit lifecycle events (sign in, sign out, token refresh, profile
    update), and subscribers are told about each one.
    """

    def __init__(self, gateway: ReportsGateway):
        self.gateway = gateway
        self.user: Optional[SessionUser] = None
        self.is_loading = True
        self._listeners: List[Listener] = []

    @property
    def token(self) -> Optional[str]:
        return self.gateway.token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self.user)

    async def initialize(self) -> None:
        if self.token:
            result = await self.gateway.me()
            if is_failure(result):
                logger.info("Stored session is no longer valid: %s", result.kind)
                self.gateway.token = None
                self.user = None
            else:
                self.user = result
        self.is_loading = False

    async def _start(self, result) -> Optional[Failure]:
        if is_failure(result):
            return result
        self.gateway.token = result.access_token
        self.user = result.user
        self._emit(SessionEvent.SIGNED_IN)
        return None

    async def sign_in(self, email: str, password: str) -> Optional[Failure]:
        return await self._start(await self.gateway.login(email, password))

    async def register(self, first_name: str, last_name: str, email: str, password: str) -> Optional[Failure]:
        return await self._start(await self.gateway.register(first_name, last_name, email, password))

    async def sign_out(self) -> None:
        self.gateway.token = None
        self.user = None
        self._emit(SessionEvent.SIGNED_OUT)

    async def refresh(self) -> Optional[Failure]:
        result = await self.gateway.refresh()
        if is_failure(result):
            if isinstance(result, Unauthorized):
                await self.sign_out()
            return result
        self.gateway.token = result.access_token
        self.user = result.user
        self._emit(SessionEvent.TOKEN_REFRESHED)
        return None

    async def update_profile(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        avatar: Optional[ImageFile] = None,
    ) -> Optional[Failure]:
        if not self.user:
            return Unauthorized(message="Debes iniciar sesión")
        result = await self.gateway.update_profile(first_name, last_name, avatar)
        if is_failure(result):
            return result
        self.user = result
        self._emit(SessionEvent.USER_UPDATED)
        return None

    def owns(self, author_id) -> bool:
        return self.user is not None and str(self.user.id) == str(author_id)

    def can_edit(self, report) -> bool:
        """Edit, delete and status changes are offered to the report author only."""
        return report is not None and self.owns(report.author_id)
