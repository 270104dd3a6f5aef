import logging
from typing import Optional

from supabase import AuthError, Client

logger = logging.getLogger(__name__)

# Flask session key holding the signed-in browser's Supabase tokens
AUTH_SESSION_KEY = "auth"


def session_tokens(session) -> Optional[dict]:
    """Reduce a Supabase session to what the browser cookie carries."""
    if session is None:
        return None
    user = session.user
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "user_id": user.id if user else None,
        "email": user.email if user else None,
    }


class SupabaseAuth:
    """
    Auth boundary for one request: restores the browser's session on a
    request-scoped client and runs sign-in, sign-up and sign-out against it.
    Sessions are exchanged as token dicts (see session_tokens).
    """

    def __init__(self, client: Client, tokens: Optional[dict] = None):
        self.client = client
        self.tokens = tokens

    def get_session(self) -> Optional[dict]:
        if not self.tokens:
            return None
        try:
            response = self.client.auth.set_session(
                self.tokens["access_token"], self.tokens["refresh_token"])
        except AuthError as e:
            logger.warning("⚠️ Stored session rejected, signing out: %s", e)
            return None
        return session_tokens(response.session)

    def subscribe(self, callback):
        return self.client.auth.on_auth_state_change(
            lambda event, session: callback(event, session_tokens(session)))

    def sign_in(self, email, password) -> Optional[dict]:
        response = self.client.auth.sign_in_with_password({
            "email": email,
            "password": password
        })
        return session_tokens(response.session)

    def sign_up(self, email, password, full_name):
        return self.client.auth.sign_up({
            "email": email,
            "password": password,
            "options": {"data": {"full_name": full_name}}
        })

    def sign_out(self):
        self.client.auth.sign_out()
