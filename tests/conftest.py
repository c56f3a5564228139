import httpx
import pytest
import pytest_asyncio

from panel.config import ConfigStore
from panel.main import create_app


@pytest.fixture
def config_path(tmp_path):
    """Path of a configuration file that does not exist yet."""
    return str(tmp_path / "config.yaml")


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def make_app(config_path):
    """Build the panel app against the temporary config file."""
    def factory(**kwargs):
        kwargs.setdefault("restart_command", "echo restarted")
        kwargs.setdefault("restart_timeout", 5)
        kwargs.setdefault("log_dir", "")
        return create_app(config_path=config_path, **kwargs)
    return factory


@pytest_asyncio.fixture
async def async_client(make_app):
    transport = httpx.ASGITransport(app=make_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
