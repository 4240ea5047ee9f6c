"""
Email/password and GitHub sign-in through Supabase Auth.

Failures raise AuthenticationError carrying the page the user should be sent
to, mirroring the login flow of the web UI.
"""

from loguru import logger
from pydantic import BaseModel
from supabase import AuthError, Client, create_client

from deanmachines.settings import get_settings, is_supabase_enabled

ERROR_PAGE = "/error"


class AuthenticationError(Exception):
    def __init__(self, message: str, redirect_to: str = ERROR_PAGE) -> None:
        super().__init__(message)
        self.redirect_to = redirect_to


class UserSession(BaseModel):
    user_id: str
    email: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None


class SupabaseAuth:
    """Thin wrapper over ``client.auth``."""

    def __init__(self, client: Client | None = None) -> None:
        if client is None:
            if not is_supabase_enabled():
                raise AuthenticationError("Supabase is not configured")
            settings = get_settings()
            client = create_client(settings.supabase_url, settings.supabase_anon_key)
        self.client = client

    @staticmethod
    def _session(response) -> UserSession:
        if response.user is None:
            raise AuthenticationError("No user returned by Supabase")
        session = response.session
        return UserSession(
            user_id=response.user.id,
            email=response.user.email,
            access_token=session.access_token if session else None,
            refresh_token=session.refresh_token if session else None,
        )

    def sign_in(self, email: str, password: str) -> UserSession:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            logger.warning("Sign in failed | email={} | error={}", email, e.message)
            raise AuthenticationError(f"Sign in failed: {e.message}") from e
        user = self._session(response)
        logger.info("User signed in | user={}", user.user_id)
        return user

    def sign_up(self, email: str, password: str) -> UserSession:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            logger.warning("Sign up failed | email={} | error={}", email, e.message)
            raise AuthenticationError(f"Sign up failed: {e.message}") from e
        user = self._session(response)
        logger.info("User signed up | user={}", user.user_id)
        return user

    def get_user(self, access_token: str) -> UserSession | None:
        """User behind an access token, None when the token is not valid."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as e:
            logger.debug("Token rejected | error={}", e.message)
            return None
        if response is None or response.user is None:
            return None
        return UserSession(
            user_id=response.user.id,
            email=response.user.email,
            access_token=access_token,
        )

    def sign_in_with_github(self, redirect_to: str | None = None) -> str:
        """Start the GitHub OAuth flow and return the provider URL."""
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            response = self.client.auth.sign_in_with_oauth(
                {"provider": "github", "options": options}
            )
        except AuthError as e:
            raise AuthenticationError(f"Failed to initiate GitHub OAuth: {e.message}") from e
        if not response.url:
            raise AuthenticationError("No redirect URL received from GitHub OAuth")
        return response.url

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except AuthError as e:
            logger.error("Sign out failed | error={}", e.message)
            raise AuthenticationError(f"Failed to sign out: {e.message}") from e
