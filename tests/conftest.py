import os

import pytest
from dotenv import load_dotenv

# Load .env once for tests
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_PATH = os.path.join(ROOT, ".env")
load_dotenv(ENV_PATH)

# The OpenAI client is built eagerly; give it dummy credentials.
if "OPENAI_API_KEY" not in os.environ:
    os.environ["OPENAI_API_KEY"] = os.getenv("PROXY_API_KEY") or "DUMMY_TEST_KEY"
if "OPENAI_BASE_URL" not in os.environ:
    os.environ["OPENAI_BASE_URL"] = os.getenv("PROXY_BASE_URL") or "http://localhost:9999"

# Keep the app on process-local adapters.
os.environ.setdefault("STORE_MODE", "memory")
os.environ.setdefault("PUSH_MODE", "log")
os.environ["SIGNAL_JOB_ENABLED"] = "0"

from adapters.db.memory_adapter import MemoryStore  # noqa: E402
from adapters.metrics.noop import NoOpMetrics  # noqa: E402
from adapters.push.base import PushReport, PushResult  # noqa: E402
from app.dependencies import get_backend, require_api_key  # noqa: E402
from app.main import app  # noqa: E402
from quantumleap.signals import Backend  # noqa: E402
from quantumleap.types import Generation  # noqa: E402


class RecordingNotifier:
    """Notifier double: records every multicast; tokens in `failing` fail."""

    name = "recording"

    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)

    def send_multicast(self, *, title, body, tokens):
        self.calls.append({"title": title, "body": body, "tokens": list(tokens)})
        report = PushReport()
        for t in tokens:
            if t in self.failing:
                report.add(PushResult(token=t, success=False, error="unregistered"))
            else:
                report.add(PushResult(token=t, success=True))
        return report


class FakeLLM:
    """LLM double returning canned values in order; records every call."""

    PROVIDER_ID = "fake"

    def __init__(self, *values, tool_calls=0):
        self.values = list(values)
        self.calls = []
        self.tool_calls = tool_calls

    async def generate(self, *, prompt, output_schema=None, tools=(), temperature=0.7):
        self.calls.append(
            {
                "prompt": prompt,
                "output_schema": output_schema,
                "tools": [t.name for t in tools],
                "temperature": temperature,
            }
        )
        value = self.values.pop(0) if self.values else None
        if isinstance(value, Exception):
            raise value
        return Generation(
            value=value, token_in=10, token_out=20, cost_usd=0.001, tool_calls=self.tool_calls
        )


@pytest.fixture(autouse=True)
def disable_api_key_auth():
    """Disable X-API-Key auth for tests."""
    prev = app.dependency_overrides.get(require_api_key)
    app.dependency_overrides[require_api_key] = lambda: None
    try:
        yield
    finally:
        if prev is None:
            app.dependency_overrides.pop(require_api_key, None)
        else:
            app.dependency_overrides[require_api_key] = prev


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def backend(store, notifier):
    return Backend(store=store, notifier=notifier, metrics=NoOpMetrics())


@pytest.fixture
def app_backend(backend):
    """Inject a memory-backed Backend into the app."""
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield backend
    finally:
        app.dependency_overrides.pop(get_backend, None)
