"""
Admin session state backed by Supabase Auth.

The backend reports session changes through its auth-state callback;
AdminSession mirrors them into an `authenticated` flag and re-publishes them
to local listeners. The subscription is attached on startup and detached on
shutdown.
"""
from typing import Any, Callable, List, Optional
import logging
import threading

from supabase import AuthError

from interior_cms.backend import Configured, get_backend
from interior_cms.errors import ConfigurationError

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, Optional[Any]], None]


class InvalidCredentialsError(Exception):
    """Raised when the backend rejects an email/password pair."""

    def __init__(self, message: str = "이메일 또는 비밀번호가 올바르지 않습니다."):
        self.message = message
        super().__init__(self.message)


class AdminSession:
    """Process-wide admin session flag driven by backend auth events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._session: Optional[Any] = None
        self._listeners: List[SessionListener] = []
        self._subscription: Optional[Any] = None

    @property
    def authenticated(self) -> bool:
        return self._session is not None

    @property
    def email(self) -> Optional[str]:
        user = getattr(self._session, "user", None)
        return getattr(user, "email", None)

    def _client(self):
        backend = get_backend()
        if not isinstance(backend, Configured):
            raise ConfigurationError()
        return backend.client

    def attach(self) -> bool:
        """
        Subscribe to backend auth events and load any existing session.

        Returns:
            bool: False when the backend is not configured
        """
        if self._subscription is not None:
            return True

        backend = get_backend()
        if not isinstance(backend, Configured):
            logger.info("Supabase not configured - admin sign-in unavailable")
            return False

        auth = backend.client.auth
        self._subscription = auth.on_auth_state_change(self._on_auth_state_change)
        self._session = auth.get_session()
        logger.info(f"Attached to Supabase auth events (session present: {self.authenticated})")
        return True

    def detach(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None
        logger.info("Detached from Supabase auth events")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener called with (event, session) on every change.

        Returns:
            Callable: Removes the listener when called
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _on_auth_state_change(self, event: str, session: Optional[Any]) -> None:
        self._session = session
        logger.info(f"Auth state changed: {event} (authenticated: {self.authenticated})")

        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Session listener failed on {event}: {str(e)}", exc_info=True)

    def sign_in(self, email: str, password: str) -> Any:
        """
        Sign in with email and password.

        Returns:
            The backend session object

        Raises:
            ConfigurationError: If Supabase is not configured
            InvalidCredentialsError: If the backend rejects the credentials
        """
        client = self._client()
        self.attach()

        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.warning(f"Admin sign-in rejected for {email}: {str(e)}")
            raise InvalidCredentialsError()

        if response.session is None:
            raise InvalidCredentialsError()

        logger.info(f"Admin signed in: {email}")
        return response.session

    def sign_out(self) -> None:
        client = self._client()
        client.auth.sign_out()
        logger.info("Admin signed out")


admin_session = AdminSession()
