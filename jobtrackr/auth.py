import streamlit as st

from jobtrackr.auth_client import HostedAuthClient
from jobtrackr.db import get_conn
from jobtrackr.errors import JobTrackrError
from jobtrackr.local_state import LocalState, ResetThrottle
from jobtrackr.repository import PostgresRepository
from jobtrackr.service import password_strength
from jobtrackr.session import SessionGate
from jobtrackr.store import RecordStore

STRENGTH_COLORS = {"Weak": "red", "Medium": "orange", "Strong": "green"}
KEEP_KEYS = {"gate"}


def get_gate(settings) -> SessionGate:
    """One gate per browser session, kept across reruns."""
    if "gate" not in st.session_state:
        provider = HostedAuthClient(settings.auth_url, settings.auth_key, redirect_to=settings.reset_redirect_url)
        store = RecordStore(PostgresRepository(lambda: get_conn(settings.database_url)))
        throttle = ResetThrottle(LocalState(settings.state_dir), settings.reset_cooldown_seconds)
        gate = SessionGate(provider, store, throttle)
        gate.restore_session()
        st.session_state.gate = gate
    return st.session_state.gate


def reset_ui_state():
    """Drops every per-user UI value; only the gate survives."""
    for key in list(st.session_state.keys()):
        if key not in KEEP_KEYS:
            del st.session_state[key]


def reset_ui_if_owner_changed(gate: SessionGate):
    if st.session_state.get("ui_owner") != gate.owner_id:
        reset_ui_state()
    st.session_state["ui_owner"] = gate.owner_id


def _flash(kind: str, msg: str):
    st.session_state["auth_flash"] = (kind, msg)


def _show_flash():
    flash = st.session_state.pop("auth_flash", None)
    if flash:
        kind, msg = flash
        (st.success if kind == "ok" else st.error)(msg)


def _pick_up_recovery_link(gate: SessionGate):
    params = st.query_params
    if params.get("type") != "recovery" or not params.get("token_hash"):
        return
    token_hash = params["token_hash"]
    st.query_params.clear()
    try:
        gate.enter_recovery(token_hash)
    except JobTrackrError as e:
        _flash("err", str(e))


def reset_password_form(gate: SessionGate):
    st.subheader("Reset your password")
    with st.form("reset_password_form"):
        password = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        if st.form_submit_button("Update password"):
            try:
                gate.complete_password_reset(password, confirm)
            except JobTrackrError as e:
                st.error(str(e))
            else:
                _flash("ok", "Password updated successfully!")
                st.rerun()


def require_login(settings, gate: SessionGate):
    if not settings.auth_configured:
        st.error(
            "Auth not configured. Set env vars:\n"
            "- JOBTRACKR_AUTH_URL\n"
            "- JOBTRACKR_AUTH_KEY\n\n"
            "Both come from your hosted project's API settings."
        )
        st.stop()

    _pick_up_recovery_link(gate)
    reset_ui_if_owner_changed(gate)

    if gate.is_authenticated and not gate.recovery_mode:
        return

    st.title("JobTrackr")
    st.caption("Track and manage your job applications")
    _show_flash()

    if gate.recovery_mode:
        reset_password_form(gate)
        st.stop()

    mode = st.radio("", ["Login", "Sign Up"], horizontal=True, key="auth_mode")
    email = st.text_input("Email")
    password = st.text_input("Password", type="password")

    if mode == "Sign Up":
        label, level = password_strength(password)
        if level:
            st.progress(level / 3, text=f":{STRENGTH_COLORS[label]}[{label}] password")

        if st.button("Sign Up"):
            try:
                session = gate.sign_up(email, password)
            except JobTrackrError as e:
                st.error(str(e))
            else:
                if session is None:
                    _flash("ok", "Signup successful! Please check your email to confirm.")
                st.rerun()
    else:
        a, b = st.columns([1, 1])
        if a.button("Login"):
            try:
                gate.sign_in(email, password)
            except JobTrackrError as e:
                st.error(str(e))
            else:
                st.rerun()

        if b.button("Forgot password?"):
            try:
                gate.request_password_reset(email)
            except JobTrackrError as e:
                st.error(str(e))
            else:
                st.success("Password reset email sent. Check your inbox.")

    st.stop()


def logout_button(gate: SessionGate):
    if st.button("Logout"):
        error = None
        try:
            gate.sign_out()
        except JobTrackrError as e:
            error = str(e)
        reset_ui_state()
        st.session_state["ui_owner"] = None
        if error:
            _flash("err", error)
        st.rerun()
