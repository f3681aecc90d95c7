import asyncio
import inspect
import pathlib
import sys
from datetime import date

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from satsfolio.pricing import InMemoryPriceOracle  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            argnames = pyfuncitem._fixtureinfo.argnames
            loop.run_until_complete(test_function(**{name: pyfuncitem.funcargs[name] for name in argnames}))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def flat_oracle():
    """Build an oracle quoting a constant BTC price for every day in a window."""

    def _build(
        usd: float = 50_000.0,
        brl: float = 250_000.0,
        start: date = date(2023, 1, 1),
        end: date = date(2025, 12, 31),
    ) -> InMemoryPriceOracle:
        return InMemoryPriceOracle.flat({"USD": usd, "BRL": brl}, start, end)

    return _build
