import httpx
import pytest
import pytest_asyncio

from console.forms import LogSection, UserForm
from console.notify import Notifier
from console.sync import FormSyncController
from panel.config import default_config
from panel.permissions import Permission


@pytest_asyncio.fixture
async def controller(async_client):
    return FormSyncController(async_client, Notifier())


def _mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


@pytest.mark.asyncio
async def test_load_populates_sections_and_users(controller, store):
    config = default_config()
    config.update(port=9000, permissions="CR")
    config["cors"]["allowed_methods"] = ["GET", "PROPFIND"]
    config["log"]["outputs"] = []
    store.write(config)

    assert await controller.load() is True

    assert controller.healthy is True
    assert controller.server.port == 9000
    assert controller.server.permissions == Permission.C | Permission.R
    assert controller.cors.methods == "GET, PROPFIND"
    assert controller.log.stderr is False
    assert [u["username"] for u in controller.users] == ["admin"]
    assert controller.notifier.last.message == "Configuration loaded"
    assert controller.notifier.errors() == []


@pytest.mark.asyncio
async def test_load_with_missing_file_uses_defaults(controller, store):
    assert await controller.load() is True
    assert controller.server.address == "0.0.0.0"
    assert controller.cors.exposed_headers == "Content-Length, Content-Range"
    assert store.exists()


@pytest.mark.asyncio
async def test_load_stops_on_broken_config(controller, config_path):
    with open(config_path, "w", encoding="utf-8") as f:
        f.write("cors: {enabled: true\n")

    assert await controller.load() is False

    assert controller.notifier.last.level == "error"
    assert controller.notifier.last.message.startswith("Failed to load configuration: ")
    assert controller.users == []


@pytest.mark.asyncio
async def test_save_server_merges_and_reloads(controller, store):
    config = default_config()
    config["rules"] = [{"path": "/secret", "permissions": "none"}]
    store.write(config)
    await controller.load()

    controller.server.port = "8081"
    controller.server.behind_proxy = True
    controller.server.permissions = Permission.R | Permission.U
    assert await controller.save_server() is True

    saved = store.read()
    assert saved["port"] == 8081
    assert saved["behindProxy"] is True
    assert saved["permissions"] == "RU"
    assert saved["rules"] == config["rules"]
    assert saved["users"] == config["users"]
    assert controller.server.port == 8081


@pytest.mark.asyncio
async def test_save_cors_splits_lists(controller, store):
    await controller.load()

    controller.cors.enabled = True
    controller.cors.methods = "GET, PUT, , GET"
    controller.cors.hosts = "https://a.example ,https://b.example"
    assert await controller.save_cors() is True

    cors = store.read()["cors"]
    assert cors["enabled"] is True
    assert cors["allowed_methods"] == ["GET", "PUT", "GET"]
    assert cors["allowed_hosts"] == ["https://a.example", "https://b.example"]
    assert controller.notifier.last.message == "CORS configuration saved"


@pytest.mark.asyncio
async def test_section_save_does_not_replay_stale_state(controller, store):
    """A log save leaves changes made by another session to other keys alone."""
    await controller.load()

    store.merge({"cors": {"enabled": True, "allowed_hosts": ["https://other.example"]}, "port": 7000})

    controller.log.format = "json"
    assert await controller.save_log() is True

    saved = store.read()
    assert saved["log"]["format"] == "json"
    assert saved["cors"] == {"enabled": True, "allowed_hosts": ["https://other.example"]}
    assert saved["port"] == 7000


@pytest.mark.asyncio
async def test_save_log_with_explicit_section(controller, store):
    await controller.load()

    section = LogSection(format="console", colors=False, stderr=False, other_outputs=("stdout",))
    assert await controller.save_log(section) is True

    assert store.read()["log"] == {"format": "console", "colors": False, "outputs": ["stdout"]}


@pytest.mark.asyncio
async def test_add_edit_delete_user(controller, store, tmp_path):
    await controller.load()

    controller.start_add_user()
    controller.user_form.username = "grace"
    controller.user_form.password = "pw"
    controller.user_form.directory = str(tmp_path / "grace")
    assert await controller.save_user() is True
    assert [u["username"] for u in controller.users] == ["admin", "grace"]
    assert controller.notifier.last.message == "User added successfully"
    assert controller.editing is None

    controller.start_edit_user(controller.users[1])
    assert controller.editing == "grace"
    controller.user_form.permissions = Permission.C | Permission.R
    assert await controller.save_user() is True
    assert store.read()["users"][1]["permissions"] == "CR"
    assert len(store.read()["users"]) == 2

    assert await controller.delete_user("grace") is True
    assert [u["username"] for u in controller.users] == ["admin"]


@pytest.mark.asyncio
async def test_duplicate_user_is_reported(controller, tmp_path):
    await controller.load()

    form = UserForm(username="admin", password="x", directory=str(tmp_path / "admin"))
    assert await controller.save_user(form, is_edit=False) is False

    assert controller.notifier.last.level == "error"
    assert controller.notifier.last.message == "Failed to save user: Username already exists"
    # still usable afterwards
    assert await controller.refresh_users() is True
    assert len(controller.users) == 1


@pytest.mark.asyncio
async def test_delete_user_with_special_characters(controller, tmp_path):
    await controller.load()
    form = UserForm(username="a b/c", password="pw", directory=str(tmp_path / "abc"))
    assert await controller.save_user(form, is_edit=False) is True

    assert await controller.delete_user("a b/c") is True
    assert [u["username"] for u in controller.users] == ["admin"]


@pytest.mark.asyncio
async def test_invalid_user_form_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"success": True, "message": "ok"})

    async with _mock_client(handler) as client:
        controller = FormSyncController(client)
        form = UserForm(username="", password="", permissions=Permission.NONE)

        assert await controller.save_user(form, is_edit=False) is False

    assert calls == []
    assert controller.notifier.errors() == [
        "Username is required",
        "Password is required",
        "Select at least one permission",
    ]


@pytest.mark.asyncio
async def test_network_failure_is_notified():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as client:
        controller = FormSyncController(client)

        assert await controller.load() is False
        assert await controller.save_cors() is False

    assert controller.healthy is False
    assert controller.notifier.errors() == [
        "Cannot connect to backend service: connection refused",
        "Failed to save CORS configuration: connection refused",
    ]


@pytest.mark.asyncio
async def test_http_error_without_json_body():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    async with _mock_client(handler) as client:
        controller = FormSyncController(client)
        assert await controller.restart() is False

    assert controller.notifier.errors() == ["Failed to restart server: HTTP error! status: 502"]


@pytest.mark.asyncio
async def test_generate_password_fills_form(controller):
    password = await controller.generate_password()

    assert len(password) == 16
    assert controller.user_form.password == password
    assert controller.notifier.last.message == "Random password generated"


@pytest.mark.asyncio
async def test_restart_success(controller):
    assert await controller.restart() is True
    messages = [n.message for n in controller.notifier.history]
    assert messages == ["Restarting WebDAV server...", "WebDAV server restarted successfully"]
