"""
Page renderers. Each page receives a PageContext built by the route guard,
so it only ever runs for a signed-in session whose role the route allows.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import streamlit as st

from config.app_config import AppConfig
from services.auth_service.models import Role, Session
from services.data_service import DataServices, CancellationToken, summarize
from services.data_service.models import EmployeeProfile, Feedback
from utils.logging_config import get_logger, log_user_interaction

logger = get_logger(__name__)

SELECTED_PROFILE_KEY = "selected_profile_id"
EDITABLE_PROFILE_FIELDS = [
    ("firstName", "First Name*", "first_name"),
    ("lastName", "Last Name*", "last_name"),
    ("department", "Department", "department"),
    ("position", "Position", "position"),
]


@dataclass
class PageContext:
    session: Session
    stores: DataServices
    cancel_token: CancellationToken
    navigate: Callable[[str], None]
    config: AppConfig

    @property
    def is_manager(self) -> bool:
        return self.session.role == Role.MANAGER

    def open_profile(self, profile_id: str):
        # Picked up once by render_profile, which moves it into the URL
        st.session_state[SELECTED_PROFILE_KEY] = profile_id
        self.navigate("/profile")


def _show_error(error: Optional[str], key: str, on_retry: Callable[[], Any]):
    """Error banner above (stale) data with a manual retry button"""
    if not error:
        return
    col1, col2 = st.columns([4, 1])
    with col1:
        st.error(error)
    with col2:
        if st.button("🔄 Retry", key=f"retry_{key}"):
            on_retry()
            st.rerun()


def _profile_rows(profiles: List[EmployeeProfile], detailed: bool) -> List[Dict[str, str]]:
    rows = []
    for profile in profiles:
        row = {"Name": profile.full_name, "Department": profile.department, "Position": profile.position}
        if detailed:
            row["Email"] = profile.email
            row["Role"] = profile.role
        rows.append(row)
    return rows


def render_dashboard(ctx: PageContext):
    session = ctx.session
    st.title(f"Welcome, {session.display_name or session.email}")
    st.write(f"Role: {session.role.value}")

    if session.role in (Role.EMPLOYEE, Role.COWORKER):
        store = ctx.stores.vacation_days
        store.ensure(session.user_id, cancel_token=ctx.cancel_token)
        days = store.value
        if days is not None:
            col1, col2, col3 = st.columns(3)
            col1.metric("Annual days", days.total_days)
            col2.metric("Days taken", days.used_days)
            col3.metric("Days remaining", days.remaining_days)

    st.subheader("Quick links")
    if st.button("👤 My Profile"):
        ctx.open_profile(session.user_id)
    if st.button("💬 Feedback received"):
        ctx.navigate("/feedback")

    st.caption(f"{ctx.config.ui.app_name} v{ctx.config.ui.app_version} · {ctx.config.environment}")


def _render_profile_editor(ctx: PageContext, profile: EmployeeProfile):
    store = ctx.stores.profile
    with st.expander("✏️ Edit Profile", expanded=False):
        with st.form(f"edit_profile_{profile.id}"):
            values = {}
            for wire_name, label, attr in EDITABLE_PROFILE_FIELDS:
                values[wire_name] = st.text_input(label, value=getattr(profile, attr))

            if st.form_submit_button("💾 Save Changes", type="primary"):
                current = {wire_name: getattr(profile, attr) for wire_name, _, attr in EDITABLE_PROFILE_FIELDS}
                changed = {k: v for k, v in values.items() if v != current[k]}
                if not changed:
                    st.info("No changes to save")
                elif store.save(changed, cancel_token=ctx.cancel_token):
                    log_user_interaction(logger, "profile_updated", profile_id=profile.id, fields=list(changed))
                    st.success("Profile updated")
                    st.rerun()


def _render_feedback_item(ctx: PageContext, item: Feedback):
    with st.container(border=True):
        st.write(item.body)
        meta = f"{item.created_at[:10]}"
        if item.is_temporary:
            meta += " · saving..."
        st.caption(meta)
        can_delete = ctx.is_manager or item.author_id == ctx.session.user_id
        if can_delete and not item.is_temporary:
            if st.button("🗑️ Delete", key=f"delete_feedback_{item.id}"):
                if ctx.stores.feedback.delete(item.id, cancel_token=ctx.cancel_token):
                    log_user_interaction(logger, "feedback_deleted", feedback_id=item.id)
                st.rerun()


def _render_profile_feedback(ctx: PageContext, profile: EmployeeProfile):
    store = ctx.stores.feedback
    store.ensure(profile.id, cancel_token=ctx.cancel_token)
    _show_error(store.error, "feedback", lambda: store.refresh(profile.id, cancel_token=ctx.cancel_token))

    if profile.id != ctx.session.user_id:
        with st.form(f"feedback_form_{profile.id}", clear_on_submit=True):
            body = st.text_area("Leave feedback", placeholder="Share something constructive...")
            if st.form_submit_button("📨 Submit Feedback", type="primary"):
                if not body.strip():
                    st.error("Feedback cannot be empty")
                else:
                    created = store.create(
                        profile.id,
                        {"body": body.strip(), "authorId": ctx.session.user_id, "targetId": profile.id},
                        cancel_token=ctx.cancel_token,
                    )
                    if created is None:
                        # The placeholder is already gone; say why before the list renders
                        st.error(store.error or store.create_error_message)
                    else:
                        log_user_interaction(logger, "feedback_created", profile_id=profile.id)

    if not store.feedback and not store.loading:
        st.info("No feedback yet.")
    for item in store.feedback:
        _render_feedback_item(ctx, item)


def render_profile(ctx: PageContext):
    selected = st.session_state.pop(SELECTED_PROFILE_KEY, None)
    if selected:
        # Keeps reruns on the selected profile; menu links arrive without it
        st.query_params["id"] = selected
    profile_id = st.query_params.get("id") or ctx.session.user_id
    store = ctx.stores.profile
    store.ensure(profile_id, cancel_token=ctx.cancel_token)
    _show_error(store.error, "profile", lambda: store.refresh(profile_id, cancel_token=ctx.cancel_token))

    profile = store.value
    if profile is None:
        return

    st.title(profile.full_name)
    st.write(f"**Department:** {profile.department or '—'}")
    st.write(f"**Position:** {profile.position or '—'}")
    if profile.email:
        st.write(f"**Email:** {profile.email}")

    if ctx.is_manager or profile.id == ctx.session.user_id:
        _render_profile_editor(ctx, profile)

    st.divider()
    st.subheader("💬 Feedback")
    _render_profile_feedback(ctx, profile)


def _render_directory(ctx: PageContext, detailed: bool):
    store = ctx.stores.directory
    store.ensure(cancel_token=ctx.cancel_token)
    _show_error(store.error, "directory", lambda: store.refresh(cancel_token=ctx.cancel_token))

    profiles = store.profiles
    st.caption(f"{len(profiles)} profile{'s' if len(profiles) != 1 else ''}")
    for profile in profiles:
        col1, col2, col3 = st.columns([3, 1, 1])
        with col1:
            details = f"**{profile.full_name}** · {profile.position or profile.department}"
            if detailed and profile.email:
                details += f" · {profile.email}"
            st.markdown(details)
        with col2:
            if st.button("View", key=f"view_{profile.id}"):
                ctx.open_profile(profile.id)
        with col3:
            if profile.id != ctx.session.user_id and st.button("Feedback", key=f"fb_{profile.id}"):
                ctx.open_profile(profile.id)


def render_profiles_dashboard(ctx: PageContext):
    st.title("🗂️ All Profiles")
    _render_directory(ctx, detailed=True)


def render_profile_browser(ctx: PageContext):
    st.title("🔎 Browse Colleagues")
    _render_directory(ctx, detailed=False)


def render_feedback(ctx: PageContext):
    st.title("Feedback Received")
    st.caption("View feedback and recognition from your colleagues")

    store = ctx.stores.received_feedback
    store.ensure(cancel_token=ctx.cancel_token)
    _show_error(store.error, "received", lambda: store.refresh(cancel_token=ctx.cancel_token))

    if not store.loading and not store.error and not store.feedback:
        st.markdown("### No Feedback Yet")
        st.write("When your colleagues leave feedback for you, it will appear here.")
        return

    for item in store.feedback:
        with st.container(border=True):
            st.write(item.body)
            st.caption(item.created_at[:10])


def _render_vacation_days(ctx: PageContext, employee_id: str):
    store = ctx.stores.vacation_days
    store.ensure(employee_id, cancel_token=ctx.cancel_token)
    _show_error(store.error, f"vacation_{employee_id}",
                lambda: store.refresh(employee_id, cancel_token=ctx.cancel_token))

    days = store.value
    if days is None or days.stats is None:
        return

    col1, col2 = st.columns(2)
    col1.metric("Days Taken This Year", days.used_days, help="Approved absence days")
    col2.metric("Days Remaining", days.remaining_days, help=f"Out of {days.total_days} annual days")

    st.markdown("**Absence Summary**")
    for line in summarize(days):
        st.write(f"• {line}")


def render_absence(ctx: PageContext):
    st.title("🌴 My Absence")
    st.caption("Your absence request history and trends")
    _render_vacation_days(ctx, ctx.session.user_id)


def render_manager_absence(ctx: PageContext):
    st.title("📅 Team Absence")
    directory = ctx.stores.directory
    directory.ensure(cancel_token=ctx.cancel_token)
    _show_error(directory.error, "team_absence", lambda: directory.refresh(cancel_token=ctx.cancel_token))

    profiles = [p for p in directory.profiles if p.id != ctx.session.user_id]
    if not profiles:
        st.info("No team members found.")
        return

    selected = st.selectbox("Employee", profiles, format_func=lambda p: p.full_name)
    if selected is not None:
        _render_vacation_days(ctx, selected.id)


def render_team_management(ctx: PageContext):
    st.title("👥 Team Management")
    directory = ctx.stores.directory
    directory.ensure(cancel_token=ctx.cancel_token)
    _show_error(directory.error, "team", lambda: directory.refresh(cancel_token=ctx.cancel_token))

    by_department: Dict[str, List[EmployeeProfile]] = {}
    for profile in directory.profiles:
        by_department.setdefault(profile.department or "Unassigned", []).append(profile)

    for department in sorted(by_department):
        with st.expander(f"{department} ({len(by_department[department])})"):
            st.table(_profile_rows(by_department[department], detailed=True))


PAGE_RENDERERS: Dict[str, Callable[[PageContext], None]] = {
    "/dashboard": render_dashboard,
    "/profile": render_profile,
    "/profiles": render_profiles_dashboard,
    "/profiles/browse": render_profile_browser,
    "/feedback": render_feedback,
    "/absence": render_absence,
    "/manager/absence": render_manager_absence,
    "/manager/team": render_team_management,
}
