"""
Tests for feedback stores: optimistic create/delete, stale responses, cancellation
"""

from unittest.mock import Mock

import pytest

from infrastructure.external.api_client import ApiResponseError, NetworkError
from services.data_service.cancellation import CancellationToken, cancel_scope
from services.data_service.feedback_store import FeedbackStore, ReceivedFeedbackStore


def feedback(id, body="Great work", author="u2", target="p1"):
    return {"id": id, "authorId": author, "targetId": target, "body": body,
            "createdAt": "2024-03-01T10:00:00Z", "updatedAt": "2024-03-01T10:00:00Z"}


EXISTING = [feedback("f1"), feedback("f2", "Helpful review"), feedback("f3", "Thanks for the help")]


@pytest.fixture
def client():
    client = Mock()
    client.get.return_value = {"data": [dict(item) for item in EXISTING]}
    return client


@pytest.fixture
def store(client):
    store = FeedbackStore(client)
    store.refresh("p1")
    return store


class TestRefresh:
    """Test loading feedback for a profile"""

    def test_refresh_loads_list(self, store, client):
        client.get.assert_called_once_with("/api/feedback/profiles/p1")
        assert [f.id for f in store.feedback] == ["f1", "f2", "f3"]
        assert store.error is None
        assert store.loading is False

    def test_empty_list(self, client):
        client.get.return_value = {"data": []}
        store = FeedbackStore(client)

        assert store.refresh("p1") is True
        assert store.feedback == []
        assert store.error is None

    def test_missing_envelope(self, client):
        client.get.return_value = {}
        store = FeedbackStore(client)

        assert store.refresh("p1") is True
        assert store.feedback == []

    @pytest.mark.parametrize("data", [5, "oops", {"id": "f1"}])
    def test_non_list_payload_is_an_error(self, store, client, data):
        client.get.return_value = {"data": data}

        assert store.refresh("p1") is False
        assert store.error == "Failed to fetch feedback"
        assert len(store.feedback) == 3

    def test_failure_keeps_previous_list(self, store, client):
        client.get.side_effect = NetworkError("down")

        assert store.refresh("p1") is False
        assert store.error == "Failed to fetch feedback"
        assert len(store.feedback) == 3

    def test_ensure_fetches_once_per_scope(self, store, client):
        assert store.ensure("p1") is True
        assert client.get.call_count == 1

        store.ensure("p2")
        assert client.get.call_count == 2
        client.get.assert_called_with("/api/feedback/profiles/p2")

    def test_unknown_fields_survive(self, client):
        client.get.return_value = {"data": [{**feedback("f9"), "authorName": "Eli"}]}
        store = FeedbackStore(client)
        store.refresh("p1")

        item = store.feedback[0]
        assert item.extra == {"authorName": "Eli"}
        assert item.to_dict()["authorName"] == "Eli"


class TestOptimisticCreate:
    """Test insert-then-persist behaviour"""

    def test_failed_create_restores_list(self, store, client):
        """3 records, optimistic 4th, server error, back to the original 3"""
        before = [f.to_dict() for f in store.feedback]
        seen_during_request = []

        def failing_post(endpoint, json=None):
            seen_during_request.append(list(store.feedback))
            raise ApiResponseError("Request failed with status 500", status_code=500)

        client.post.side_effect = failing_post

        result = store.create("p1", {"body": "New note"})

        assert result is None
        assert len(seen_during_request[0]) == 4
        assert seen_during_request[0][0].is_temporary
        assert seen_during_request[0][0].body == "New note"
        assert [f.to_dict() for f in store.feedback] == before
        assert store.error == "Failed to create feedback"

    def test_successful_create_replaces_temp_record(self, store, client):
        client.post.return_value = {"data": feedback("f4", "New note")}

        result = store.create("p1", {"body": "New note"})

        client.post.assert_called_once_with("/api/feedback/profiles/p1", json={"body": "New note"})
        assert result.id == "f4"
        assert [f.id for f in store.feedback] == ["f4", "f1", "f2", "f3"]
        assert not any(f.is_temporary for f in store.feedback)

    def test_temp_record_fields(self, store, client):
        captured = []
        client.post.side_effect = lambda endpoint, json=None: captured.append(store.feedback[0]) or {}

        result = store.create("p1", {"body": "New note"})

        temp = captured[0]
        assert temp.id.startswith("temp-")
        assert temp.target_id == "p1"
        assert temp.created_at == temp.updated_at
        assert temp.created_at != ""
        # No record in the response: the optimistic entry stays
        assert result is temp
        assert store.feedback[0] is temp

    def test_temp_ids_are_unique(self, store, client):
        client.post.return_value = None

        first = store.create("p1", {"body": "one"})
        second = store.create("p1", {"body": "two"})

        assert first.id != second.id

    def test_failure_removes_only_its_own_temp_record(self, store, client):
        client.post.return_value = None
        kept = store.create("p1", {"body": "saved without echo"})

        client.post.side_effect = NetworkError("down")
        store.create("p1", {"body": "lost"})

        ids = [f.id for f in store.feedback]
        assert kept.id in ids
        assert len(ids) == 4

    def test_cancelled_create_discards_result(self, store, client):
        token = CancellationToken()

        def post_then_cancel(endpoint, json=None):
            token.cancel()
            return {"data": feedback("f4", "New note")}

        client.post.side_effect = post_then_cancel

        assert store.create("p1", {"body": "New note"}, cancel_token=token) is None
        assert [f.id for f in store.feedback] == ["f1", "f2", "f3"]

    def test_cancelled_failure_sets_no_error(self, store, client):
        token = CancellationToken()

        def post_then_fail(endpoint, json=None):
            token.cancel()
            raise NetworkError("down")

        client.post.side_effect = post_then_fail

        store.create("p1", {"body": "New note"}, cancel_token=token)
        assert store.error is None


class TestOptimisticDelete:
    """Test remove-then-persist behaviour"""

    def test_delete_removes_record(self, store, client):
        assert store.delete("f2") is True

        client.delete.assert_called_once_with("/api/feedback/f2")
        assert [f.id for f in store.feedback] == ["f1", "f3"]

    def test_failed_delete_is_not_restored(self, store, client):
        client.delete.side_effect = ApiResponseError("Request failed with status 500", status_code=500)

        assert store.delete("f2") is False

        assert [f.id for f in store.feedback] == ["f1", "f3"]
        assert store.error == "Failed to delete feedback"

    def test_temp_record_cannot_be_deleted(self, store, client):
        client.post.return_value = None
        temp = store.create("p1", {"body": "pending"})

        assert store.delete(temp.id) is False

        client.delete.assert_not_called()
        assert store.error == "Feedback is still being saved"
        assert store.feedback[0].id == temp.id


class TestStaleResponses:
    """Test sequence numbers and cancellation on refresh"""

    def test_older_response_is_discarded(self, client):
        store = FeedbackStore(client)
        responses = {
            "/api/feedback/profiles/p2": {"data": [feedback("new", target="p2")]},
        }

        def get(endpoint):
            if endpoint == "/api/feedback/profiles/p1":
                # A newer refresh completes while this one is in flight
                store.refresh("p2")
                return {"data": [feedback("old")]}
            return responses[endpoint]

        client.get.side_effect = get

        assert store.refresh("p1") is False
        assert [f.id for f in store.feedback] == ["new"]
        assert store.loading is False

    def test_cancelled_refresh_is_not_applied(self, client):
        store = FeedbackStore(client)
        with cancel_scope() as token:
            pass

        assert store.refresh("p1", cancel_token=token) is False
        assert store.feedback == []

    def test_cancel_scope_cancels_on_exit(self):
        with cancel_scope() as token:
            assert token.cancelled is False
        assert token.cancelled is True

    def test_cancel_scope_cancels_on_exception(self):
        with pytest.raises(RuntimeError):
            with cancel_scope() as token:
                raise RuntimeError("page switched")
        assert token.cancelled is True


class TestReceivedFeedbackStore:
    """Test the received-feedback listing"""

    def test_refresh(self, client):
        store = ReceivedFeedbackStore(client)

        assert store.refresh() is True

        client.get.assert_called_once_with("/api/feedback/received")
        assert len(store.feedback) == 3

    def test_failure(self, client):
        client.get.side_effect = ApiResponseError("Request failed with status 500", status_code=500)
        store = ReceivedFeedbackStore(client)

        assert store.refresh() is False
        assert store.error == "Failed to fetch feedback"

    def test_non_list_payload(self, client):
        client.get.return_value = {"data": {"a": 1}}
        store = ReceivedFeedbackStore(client)

        assert store.refresh() is False
        assert store.error == "Failed to fetch feedback"
        assert store.feedback == []


if __name__ == "__main__":
    pytest.main([__file__])
