# =============================================================================
# test_auth.py - Shared password and login state
# =============================================================================
# The session logic works on any mapping, so a plain dict stands in for
# st.session_state.
#
# Run: python test_auth.py   (or: pytest)
# =============================================================================

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
from utils.auth import (
    AUTH_KEY,
    COOKIE_ACTION_KEY,
    check_password,
    session_authenticated,
    mark_logged_in,
    mark_logged_out,
    take_cookie_write,
)


def test_check_password():
    saved = config.APP_PASSWORD
    config.APP_PASSWORD = "khidma-2026"
    try:
        assert check_password("khidma-2026")
        assert check_password("  khidma-2026 ")
        assert not check_password("khidma")
        assert not check_password("")
        assert not check_password(None)
    finally:
        config.APP_PASSWORD = saved


def test_cookie_logs_in_a_new_session():
    assert session_authenticated({}, config.APP_PASSWORD)
    assert not session_authenticated({}, None)
    assert not session_authenticated({}, "")
    assert not session_authenticated({}, config.APP_PASSWORD + "x")


def test_login_writes_cookie_on_next_run():
    state = {}
    mark_logged_in(state)
    assert session_authenticated(state, None)
    assert state[COOKIE_ACTION_KEY]

    # The run after st.rerun() renders the snippet once
    assert take_cookie_write(state) == (config.APP_PASSWORD, config.AUTH_COOKIE_DAYS)
    assert take_cookie_write(state) is None
    assert state[AUTH_KEY]


def test_logout_ignores_old_cookie():
    state = {}
    mark_logged_in(state)
    take_cookie_write(state)

    mark_logged_out(state)
    # The browser still reports the cookie it connected with
    assert not session_authenticated(state, config.APP_PASSWORD)
    assert take_cookie_write(state) == ("", 0)
    assert take_cookie_write(state) is None

    mark_logged_in(state)
    assert session_authenticated(state, None)


if __name__ == "__main__":
    tests = [v for k, v in list(globals().items()) if k.startswith("test_") and callable(v)]
    for test in tests:
        test()
        print(f"OK: {test.__name__}")
    print(f"\n{len(tests)} auth tests passed")
