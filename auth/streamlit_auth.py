"""
Streamlit authentication components and session management
"""

import json
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import streamlit as st
import streamlit.components.v1 as components

from config.app_config import AppConfig, AuthConfig, get_config
from infrastructure.external.api_client import ApiClient
from services.auth_service.models import AuthState, SessionSnapshot
from services.auth_service.route_guard import (
    GuardAction,
    LOGIN_PATH,
    Route,
    RouteTable,
    evaluate,
)
from services.auth_service.session_store import SessionStore
from services.auth_service.token_storage import create_token_storage
from services.data_service import DataServices, cancel_scope
from services.ui_service.pages import PageContext
from utils.logging_config import bind_session, get_logger, log_user_interaction


SESSION_STORE_KEY = "session_store"
PENDING_COOKIE_KEY = "pending_token_cookie"
DATA_SERVICES_KEY = "data_services"
# Keys dropped on logout so the next user starts clean
USER_SCOPED_KEYS = [DATA_SERVICES_KEY, "selected_profile_id"]


def token_cookie_script(name: str, token: Optional[str], auth: AuthConfig) -> str:
    """
    Script that sets (or, for token None, expires) the token cookie in the parent page

    Components render in a same-origin iframe, so the cookie lands on the app's origin.
    """
    attributes = ["path=/", "SameSite=Strict", f"max-age={auth.token_cookie_max_age if token else 0}"]
    if auth.token_cookie_secure:
        attributes.append("Secure")
    cookie = f"{quote(name, safe='')}={quote(token or '', safe='')}; " + "; ".join(attributes)
    return f"<script>window.parent.document.cookie = {json.dumps(cookie)};</script>"


class StreamlitAuth:
    """
    Streamlit authentication handler.
    Each browser session owns one SessionStore, kept in st.session_state.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()

    def _create_session_store(self) -> SessionStore:
        storage = create_token_storage(self.config.auth, cookies=st.context.cookies, send=self._queue_cookie)
        client = ApiClient.from_config(self.config)
        store = SessionStore(client, storage, self.config.auth)
        client.token_provider = store.get_token
        client.on_unauthorized = store.handle_unauthorized
        return store

    def _queue_cookie(self, name: str, token: Optional[str]):
        # Only the latest update matters; it reaches the browser in flush_token_cookie()
        st.session_state[PENDING_COOKIE_KEY] = (name, token)

    def flush_token_cookie(self):
        """
        Deliver a queued token cookie update to the browser

        Call at the end of a script run: a run cut short by st.rerun() or
        st.switch_page() would drop the component before it executes, so the
        update stays queued until a run completes.
        """
        pending = st.session_state.get(PENDING_COOKIE_KEY)
        if pending is None:
            return
        name, token = pending
        components.html(token_cookie_script(name, token, self.config.auth), height=0)
        del st.session_state[PENDING_COOKIE_KEY]

    def get_session_store(self) -> SessionStore:
        """
        Get (and on first use, restore) the session store for this browser session

        Returns:
            SessionStore in a settled state unless another run is still restoring it
        """
        if SESSION_STORE_KEY not in st.session_state:
            st.session_state[SESSION_STORE_KEY] = self._create_session_store()

        store = st.session_state[SESSION_STORE_KEY]
        if store.state == AuthState.AUTHENTICATING:
            with st.spinner("Loading..."):
                store.initialize()
        return store

    def get_snapshot(self) -> SessionSnapshot:
        return self.get_session_store().snapshot

    def get_data_services(self) -> DataServices:
        """Resource stores for the signed-in user"""
        if DATA_SERVICES_KEY not in st.session_state:
            st.session_state[DATA_SERVICES_KEY] = DataServices.create(self.get_session_store().client)
        return st.session_state[DATA_SERVICES_KEY]

    def login(self, email: str, password: str) -> bool:
        """
        Authenticate user and create session

        Returns:
            True if successful, False otherwise
        """
        self.clear_user_state()
        return self.get_session_store().login(email, password)

    def logout(self):
        """Logout current user"""
        self.get_session_store().logout()
        self.clear_user_state()
        log_user_interaction(self.logger, "logout")

    def clear_user_state(self):
        """Clear user-scoped data from Streamlit session state"""
        for key in USER_SCOPED_KEYS:
            if key in st.session_state:
                del st.session_state[key]

    def guard(self, route: Route, page_func: Callable[[PageContext], None],
              redirect: Callable[[str], None]) -> Callable[[], None]:
        """
        Wrap a page so it only renders for sessions the route allows

        Args:
            route: Route being protected
            page_func: Page renderer, called with a PageContext
            redirect: Navigates to a path (login or landing page)
        """
        def guarded_page():
            snapshot = self.get_snapshot()
            decision = evaluate(snapshot, route.allowed_roles)

            if decision.action == GuardAction.LOADING:
                st.info("Loading...")
                return

            if decision.action == GuardAction.REDIRECT:
                self.logger.info(f"Redirecting {route.path} -> {decision.target}")
                if decision.target == LOGIN_PATH:
                    self.clear_user_state()
                redirect(decision.target)
                return

            session = snapshot.session
            with bind_session(user=session.user_id, role=session.role.value, page=route.path), \
                    cancel_scope() as token:
                context = PageContext(
                    session=session,
                    stores=self.get_data_services(),
                    cancel_token=token,
                    navigate=redirect,
                    config=self.config,
                )
                page_func(context)

        guarded_page.__name__ = f"page_{route.url_path}"
        return guarded_page

    def login_page(self, routes: RouteTable, redirect: Callable[[str], None]) -> Callable[[], None]:
        """Public login entry point; signed-in users are sent to the landing page"""
        def render():
            _, decision = routes.navigate(LOGIN_PATH, self.get_snapshot())
            if decision.action == GuardAction.REDIRECT:
                redirect(decision.target)
                return
            self.render_login_form()

        render.__name__ = "page_login"
        return render

    def render_login_form(self):
        """Render login form and demo shortcuts"""
        st.title(f"🔐 {self.config.ui.login_title}")
        st.caption(f"{self.config.ui.app_name} v{self.config.ui.app_version}")

        store = self.get_session_store()
        if store.error:
            st.error(store.error)

        with st.form("login_form"):
            st.subheader("Sign In")

            email = st.text_input("📧 Email", placeholder="you@company.com")
            password = st.text_input("🔒 Password", type="password", placeholder="Enter your password")

            login_clicked = st.form_submit_button("🔑 Sign In", type="primary", use_container_width=True)

            if login_clicked:
                if not email or not password:
                    st.error("Please enter both email and password")
                else:
                    self._attempt_login(email, password)

        if self.config.auth.demo_login_enabled and self.config.auth.demo_accounts:
            st.divider()
            st.markdown("**Quick Demo Login**")
            columns = st.columns(len(self.config.auth.demo_accounts))
            for column, account in zip(columns, self.config.auth.demo_accounts):
                with column:
                    if st.button(account.label, use_container_width=True):
                        self._attempt_login(account.email, account.password)

    def _attempt_login(self, email: str, password: str):
        with st.spinner("Authenticating..."):
            success = self.login(email, password)
        if success:
            st.rerun()
        else:
            st.error(f"❌ {self.get_session_store().error or 'Login failed'}")

    def render_user_menu(self, routes: RouteTable, pages: Dict[str, Any]):
        """Render navigation and account section in the sidebar"""
        snapshot = self.get_snapshot()
        if not snapshot.is_authenticated:
            return

        session = snapshot.session
        with st.sidebar:
            st.markdown(f"## {self.config.ui.page_icon} {self.config.ui.app_name}")

            for route in routes.visible_for(session.role):
                st.page_link(pages[route.path], label=route.title, icon=route.icon or None)

            st.divider()
            st.subheader("👤 User Account")
            st.write(f"**Welcome, {session.display_name or session.email}!**")
            st.write(f"Role: {session.role.value}")

            if st.button("🚪 Logout", use_container_width=True):
                self.logout()
                st.rerun()


# Global authentication instance
_streamlit_auth: Optional[StreamlitAuth] = None


def get_auth() -> StreamlitAuth:
    """Get the global Streamlit authentication instance"""
    global _streamlit_auth
    if _streamlit_auth is None:
        _streamlit_auth = StreamlitAuth()
    return _streamlit_auth
