# stock_dashboard/utils/auth.py
import hmac
import logging

import streamlit as st

logger = logging.getLogger(__name__)

AUTH_FLAG = "is_authenticated"


def _state(state):
    return st.session_state if state is None else state


def check_credentials(username, password, config):
    auth = (config or {}).get("auth", {})
    expected_user = str(auth.get("username", "admin"))
    expected_password = str(auth.get("password", "admin"))
    user_ok = hmac.compare_digest(str(username or "").encode(), expected_user.encode())
    password_ok = hmac.compare_digest(str(password or "").encode(), expected_password.encode())
    return user_ok and password_ok


def is_authenticated(state=None):
    return bool(_state(state).get(AUTH_FLAG, False))


def login(username, password, config, state=None):
    state = _state(state)
    if check_credentials(username, password, config):
        state[AUTH_FLAG] = True
        logger.info(f"User '{username}' logged in.")
        return True
    logger.warning(f"Failed login attempt for user '{username}'.")
    return False


def logout(state=None):
    state = _state(state)
    state[AUTH_FLAG] = False


def require_login():
    """Stops the current page unless the session is logged in."""
    if not is_authenticated():
        st.warning("Please log in from the Home page to continue.")
        st.stop()
