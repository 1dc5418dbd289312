import streamlit as st

from auth.streamlit_auth import get_auth
from config.api_config import get_environment_info, probe_api_connectivity
from config.app_config import get_config
from infrastructure.external.api_client import ApiClient
from services.auth_service.route_guard import LANDING_PATH, LOGIN_PATH, get_default_route_table
from services.ui_service.pages import PAGE_RENDERERS
from utils.logging_config import initialize_logging, get_logger

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

st.set_page_config(page_title=config.ui.page_title, page_icon=config.ui.page_icon, layout="wide")


@st.cache_resource
def startup_diagnostics():
    """Runs once per server process"""
    logger.info("API configuration", extra=get_environment_info())
    if config.api.probe_connectivity:
        return probe_api_connectivity(ApiClient.from_config(config))
    return None


startup_diagnostics()

# Initialize authentication
auth = get_auth()
routes = get_default_route_table()
authenticated = auth.get_snapshot().is_authenticated

pages = {}


def redirect(path: str):
    st.switch_page(pages[path])


pages[LOGIN_PATH] = st.Page(
    auth.login_page(routes, redirect),
    title="Sign in",
    icon="🔐",
    url_path="login",
    default=not authenticated,
)
for route in routes.routes:
    pages[route.path] = st.Page(
        auth.guard(route, PAGE_RENDERERS[route.path], redirect),
        title=route.title,
        icon=route.icon or None,
        url_path=route.url_path,
        default=authenticated and route.path == LANDING_PATH,
    )

# Every route is registered so direct URLs reach the guard; the menu lists only permitted ones
navigation = st.navigation(list(pages.values()), position="hidden")
auth.render_user_menu(routes, pages)

try:
    navigation.run()
except Exception as e:
    error_tracker.track_error(e, "page_render", page=navigation.url_path)
    st.error("🔧 **Unexpected error** - Something went wrong. Please try again or reload the page.")

# Reached only by runs that were not cut short by a rerun or page switch
auth.flush_token_cookie()
