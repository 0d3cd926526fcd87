import pytest

from log_analyzer.config import Config
from log_analyzer.generator import generate_lines
from log_analyzer.pipeline import LogPipeline
from log_analyzer.repository import AnalysisRepository
from log_analyzer.service import LogAnalysisService
from log_analyzer.web import create_app


@pytest.fixture
def sample_lines():
    return [
        "[2025-10-17 10:00:00] GET /api/users 200 120ms 192.168.1.1",
        "[2025-10-17 10:00:01] POST /api/login 401 35ms 192.168.1.2",
        "[2025-10-17 10:00:02] GET /api/orders 500 900ms 192.168.1.3",
        "[2025-10-17 10:00:03] GET /api/users 200 abcms 192.168.1.1",
        "[2025-10-17 10:00:04] GET /api/users",
        "",
        "GET /health 204 2ms 10.0.0.1",
    ]


@pytest.fixture(scope="session")
def large_fixture():
    """10,000 deterministic lines, roughly 2% of them truncated."""
    return generate_lines(10_000, seed=1234, malformed_rate=0.02)


@pytest.fixture
def config(tmp_path):
    return Config(
        store_path=str(tmp_path / "store" / "analyses.json"),
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def repository(config):
    return AnalysisRepository(config.store_path)


@pytest.fixture
def service(config, repository):
    return LogAnalysisService(LogPipeline(config), repository)


@pytest.fixture
def app(config, service):
    application = create_app(config, service)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
