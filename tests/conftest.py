import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before any domain is initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


_LIBRARY_TEST_DIRS = ("shipping", "supplier")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        # shipping/ and supplier/ hold pure library tests with no domain/ subdir
        if "/domain/" in str(test_path) or test_path.parent.name in _LIBRARY_TEST_DIRS:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path) or test_path.parent.name in ("notifications", "payments"):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
