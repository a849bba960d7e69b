import concurrent.futures
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from tagclose.core import MarkupReport, check_markup  # noqa: E402


class InlineExecutor:
    """Runs submitted work immediately; results still go through futures."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        return None


class CountingClassifier:
    def __init__(self, classify=check_markup):
        self._classify = classify
        self.calls: list[str] = []

    def __call__(self, text: str) -> MarkupReport:
        self.calls.append(text)
        return self._classify(text)


@pytest.fixture
def counting_classifier():
    return CountingClassifier()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
