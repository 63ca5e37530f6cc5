import importlib.util
import logging
import warnings
from pathlib import Path

import pytest

from util.functions import is_remote, join_url, progress_percent
from util.timing import timed

ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize(
    "processed,total,expected",
    [(0, 0, 0.0), (3, 0, 0.0), (0, 4, 0.0), (1, 4, 25.0), (4, 4, 100.0), (5, 4, 100.0)],
)
def test_progress_percent_stays_in_range(processed, total, expected):
    assert progress_percent(processed, total) == expected


def test_join_url_quotes_and_collapses_slashes():
    assert join_url("http://srv/", "/files/segments", "abc", "segment 0.mp4") == (
        "http://srv/files/segments/abc/segment%200.mp4"
    )


def test_is_remote():
    assert is_remote("https://cdn.test/a.mp4")
    assert is_remote("http://cdn.test/a.mp4")
    assert not is_remote("/media/uploads/a.mp4")


def test_timed_logs_outcome(caplog):
    log = logging.getLogger("tests.timing")
    with caplog.at_level(logging.INFO, logger="tests.timing"):
        with timed(log, "merge", segments=3):
            pass
        with pytest.raises(RuntimeError):
            with timed(log, "merge"):
                raise RuntimeError("boom")

    messages = [r.getMessage() for r in caplog.records]
    assert messages[0].startswith("merge.done ms=")
    assert "segments=3" in messages[0]
    assert messages[1].startswith("merge.failed ms=")


def test_error_catalogue_loads_without_deprecated_status_names():
    # Executed as a fresh module so its import-time status lookups run again
    module_spec = importlib.util.spec_from_file_location("enums_fresh", ROOT / "util" / "enums.py")
    module = importlib.util.module_from_spec(module_spec)
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        module_spec.loader.exec_module(module)

    assert module.ErrorMessage.TOO_MANY_FILES.value.http_status == 413
    assert set(module.ErrorMessage.__members__) == {
        "API_KEY_REQUIRED",
        "IMAGE_REQUIRED",
        "NO_FILES",
        "NOT_AN_IMAGE",
        "TOO_MANY_FILES",
        "JOB_NOT_FOUND",
        "FILE_NOT_FOUND",
    }
