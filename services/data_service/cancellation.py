"""
Cancellation tokens for fetches whose results may outlive the view that asked for them.

A Streamlit page fetches synchronously inside its own cancel_scope(), so within
a single run the token is never cancelled mid-request. It only takes effect when
store calls outlive the render: work handed to another thread, or a stored
callback invoked after the page has switched.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class CancellationToken:
    """Set once; completion handlers check it before applying results"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@contextmanager
def cancel_scope() -> Iterator[CancellationToken]:
    """
    Acquire a token for the duration of a view render

    The token is cancelled when the block exits, whether it returns normally
    or is interrupted (rerun, page switch, script stop).
    """
    token = CancellationToken()
    try:
        yield token
    finally:
        token.cancel()
