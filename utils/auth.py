# =============================================================================
# utils/auth.py
# =============================================================================
# PURPOSE:
#   A single shared password in front of every page.
#
# HOW IT WORKS:
#   - The team shares one password (config.APP_PASSWORD)
#   - After a correct login the browser gets a cookie (config.AUTH_COOKIE)
#     that lasts AUTH_COOKIE_DAYS days, so nobody has to log in on every
#     visit. Streamlit can read cookies (st.context.cookies) but not set
#     them, so a tiny JS snippet writes it.
#   - Inside one browser session st.session_state.authenticated is enough
#
# COOKIE WRITES:
#   A snippet rendered right before st.rerun() is thrown away with the run,
#   so login and logout only leave a flag (COOKIE_ACTION_KEY). require_auth
#   renders the snippet on the next run and drops the flag.
#   st.context.cookies keeps the value the browser sent when it connected,
#   so after a logout the old cookie is ignored until a new login.
#
# USAGE (top of every page, after st.set_page_config):
#       from utils.auth import require_auth
#       require_auth()
# =============================================================================

import streamlit as st
import streamlit.components.v1 as components

import config

AUTH_KEY = "authenticated"
LOGGED_OUT_KEY = "auth_logged_out"
COOKIE_ACTION_KEY = "auth_set_cookie"

COOKIE_SET = "set"
COOKIE_CLEAR = "clear"


def check_password(password):
    """True if the typed password is the shared password."""
    return (password or "").strip() == config.APP_PASSWORD


# =============================================================================
# SESSION STATE (plain mapping in, plain values out)
# =============================================================================

def session_authenticated(state, cookie):
    """
    Decide whether this session is logged in.

    PARAMETERS:
        state (mapping): st.session_state or any dict
        cookie (str | None): The auth cookie the browser sent

    RETURNS:
        bool: True after a login in this session, or with a valid cookie
              unless the user logged out in this session

    EXAMPLE:
        session_authenticated({}, config.APP_PASSWORD) → True
        session_authenticated({"auth_logged_out": True}, config.APP_PASSWORD) → False
    """
    if state.get(AUTH_KEY):
        return True
    if state.get(LOGGED_OUT_KEY):
        return False
    return bool(cookie) and cookie == config.APP_PASSWORD


def mark_logged_in(state):
    state[AUTH_KEY] = True
    state.pop(LOGGED_OUT_KEY, None)
    state[COOKIE_ACTION_KEY] = COOKIE_SET


def mark_logged_out(state):
    state[AUTH_KEY] = False
    state[LOGGED_OUT_KEY] = True
    state[COOKIE_ACTION_KEY] = COOKIE_CLEAR


def take_cookie_write(state):
    """
    Pop the pending cookie write.

    RETURNS:
        tuple | None: (value, days) to write, None when nothing is pending
    """
    action = state.pop(COOKIE_ACTION_KEY, None)
    if action == COOKIE_SET:
        return config.APP_PASSWORD, config.AUTH_COOKIE_DAYS
    if action == COOKIE_CLEAR:
        return "", 0
    return None


# =============================================================================
# STREAMLIT
# =============================================================================

def _cookie_value():
    try:
        return st.context.cookies.get(config.AUTH_COOKIE)
    except Exception as e:
        print(f"[WARN] Could not read auth cookie: {e}")
        return None


def is_authenticated():
    """Logged in this session, or holding a valid cookie from an earlier one."""
    if session_authenticated(st.session_state, _cookie_value()):
        st.session_state[AUTH_KEY] = True
        return True
    return False


def _set_cookie(value, days):
    max_age = days * 24 * 60 * 60
    components.html(
        f"""
        <script>
        window.parent.document.cookie =
            "{config.AUTH_COOKIE}={value}; path=/; max-age={max_age}; SameSite=Lax";
        </script>
        """,
        height=0,
    )


def _write_pending_cookie():
    pending = take_cookie_write(st.session_state)
    if pending is not None:
        _set_cookie(*pending)


def login_screen():
    """Render the password form."""
    st.markdown(f"## 🔒 {config.APP_TITLE}")
    st.caption(config.APP_SUBTITLE)

    with st.form("login_form"):
        password = st.text_input("كلمة المرور", type="password")
        submitted = st.form_submit_button("دخول", type="primary", use_container_width=True)

    if submitted:
        if check_password(password):
            mark_logged_in(st.session_state)
            st.rerun()
        else:
            st.error("كلمة المرور غير صحيحة")


def require_auth():
    """Stop the page here unless the user is logged in."""
    _write_pending_cookie()
    if not is_authenticated():
        login_screen()
        st.stop()


def logout():
    """Forget the login in this session; the cookie is expired on the next run."""
    mark_logged_out(st.session_state)
