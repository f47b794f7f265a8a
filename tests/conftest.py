import sys

import pytest

from typegen.app.settings import loadSettings



def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        "asyncio_mode",
        "Execution mode for @pytest.mark.asyncio tests (only 'strict' is supported).",
        default="strict",
    )
    parser.addini(
        "asyncio_default_fixture_loop_scope",
        "Scope for the event loop fixture (only 'function' is supported).",
        default="function",
    )



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")

    mode = config.getini("asyncio_mode")
    if mode != "strict":
        raise pytest.UsageError(
            "tests/conftest.py only supports asyncio_mode='strict'; mark async tests explicitly"
        )

    loopScope = config.getini("asyncio_default_fixture_loop_scope")
    if loopScope != "function":
        raise pytest.UsageError(
            "tests/conftest.py only supports asyncio_default_fixture_loop_scope='function'"
        )

    config.addinivalue_line("markers", "asyncio: mark a test to run inside an event loop")



@pytest.fixture(autouse=True)
def isolatedSettings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep the developer's ~/.typegen settings out of the tests."""
    monkeypatch.setenv("TYPEGEN_SETTINGS", str(tmp_path / "no-user-settings.json5"))
    loadSettings.cache_clear()
    yield
    loadSettings.cache_clear()
