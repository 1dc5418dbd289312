"""
Tests for page renderers: profile selection and inline form errors
"""

import pytest
from unittest.mock import MagicMock, Mock, patch

from config.app_config import AppConfig
from services.auth_service.models import Role, Session
from services.data_service.cancellation import CancellationToken
from services.data_service.models import EmployeeProfile
from services.ui_service.pages import SELECTED_PROFILE_KEY, PageContext, render_profile


COLLEAGUE = {"id": "p7", "firstName": "Ada", "lastName": "Moss", "department": "R&D"}


class MockSessionState:
    """Mock Streamlit session state for testing"""

    def __init__(self):
        self.data = {}

    def __contains__(self, key):
        return key in self.data

    def __getitem__(self, key):
        return self.data[key]

    def __setitem__(self, key, value):
        self.data[key] = value

    def get(self, key, default=None):
        return self.data.get(key, default)

    def pop(self, key, default=None):
        return self.data.pop(key, default)


class TestRenderProfile:
    """Test which profile the profile page shows"""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.mock_st = MagicMock()
        self.mock_st.session_state = MockSessionState()
        self.mock_st.query_params = {}
        self.mock_st.button.return_value = False
        self.mock_st.form_submit_button.return_value = False
        self.st_patcher = patch("services.ui_service.pages.st", self.mock_st)
        self.st_patcher.start()

        self.stores = Mock()
        self.stores.profile.error = None
        self.stores.profile.value = None
        self.stores.feedback.error = None
        self.stores.feedback.loading = False
        self.stores.feedback.feedback = []
        self.navigate = Mock()

        yield

        self.st_patcher.stop()

    def context(self, role=Role.EMPLOYEE):
        return PageContext(
            session=Session(user_id="u2", role=role, bearer_token="tok"),
            stores=self.stores,
            cancel_token=CancellationToken(),
            navigate=self.navigate,
            config=AppConfig(),
        )

    def shown_profile_ids(self):
        return [call.args[0] for call in self.stores.profile.ensure.call_args_list]

    def test_own_profile_by_default(self):
        render_profile(self.context())

        assert self.shown_profile_ids() == ["u2"]

    def test_selected_profile_moves_into_url(self):
        ctx = self.context()
        ctx.open_profile("p7")
        self.navigate.assert_called_once_with("/profile")

        render_profile(ctx)

        assert self.shown_profile_ids() == ["p7"]
        assert self.mock_st.query_params["id"] == "p7"
        assert SELECTED_PROFILE_KEY not in self.mock_st.session_state

    def test_rerun_stays_on_selected_profile(self):
        ctx = self.context()
        ctx.open_profile("p7")
        render_profile(ctx)

        render_profile(ctx)

        assert self.shown_profile_ids() == ["p7", "p7"]

    def test_menu_link_after_colleague_shows_own_profile(self):
        """Navigating to the page again (query params cleared) drops the colleague"""
        ctx = self.context()
        ctx.open_profile("p7")
        render_profile(ctx)

        self.mock_st.query_params.clear()
        render_profile(ctx)

        assert self.shown_profile_ids() == ["p7", "u2"]

    def test_failed_feedback_shows_error(self):
        self.stores.profile.value = EmployeeProfile.from_dict(COLLEAGUE)
        self.mock_st.query_params["id"] = "p7"
        self.mock_st.form_submit_button.return_value = True
        self.mock_st.text_area.return_value = "Nice work"

        def fail(*args, **kwargs):
            self.stores.feedback.error = "Failed to create feedback"
            return None

        self.stores.feedback.create.side_effect = fail

        render_profile(self.context())

        self.stores.feedback.create.assert_called_once()
        assert self.stores.feedback.create.call_args.args[1]["body"] == "Nice work"
        self.mock_st.error.assert_called_once_with("Failed to create feedback")

    def test_empty_feedback_is_rejected(self):
        self.stores.profile.value = EmployeeProfile.from_dict(COLLEAGUE)
        self.mock_st.query_params["id"] = "p7"
        self.mock_st.form_submit_button.return_value = True
        self.mock_st.text_area.return_value = "   "

        render_profile(self.context())

        self.stores.feedback.create.assert_not_called()
        self.mock_st.error.assert_called_once_with("Feedback cannot be empty")


if __name__ == "__main__":
    pytest.main([__file__])
