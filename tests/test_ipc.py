from unittest.mock import MagicMock

import pytest

from almost_fullscreen.core.compositor.ipc import IPC


@pytest.fixture
def sock():
    mock_sock = MagicMock()
    mock_sock.is_connected.return_value = True
    return mock_sock


@pytest.fixture
def ipc(sock):
    return IPC(sock=sock)


class TestCalls:
    def test_configure_view(self, ipc, sock):
        ipc.configure_view(42, 8, 8, 1904, 1064)

        sock.configure_view.assert_called_once_with(42, 8, 8, 1904, 1064, None)

    def test_maximize_assigns_center_slot(self, ipc, sock):
        ipc.set_view_maximized(42)

        sock.assign_slot.assert_called_once_with(42, "slot_c")

    def test_restore_sends_grid_restore(self, ipc, sock):
        ipc.restore_view(42)

        sock.send_json.assert_called_once_with(
            {"method": "grid/restore", "data": {"view_id": 42}}
        )

    def test_register_binding_returns_id(self, ipc, sock):
        sock.register_binding.return_value = {"result": "ok", "binding-id": 7}

        assert ipc.register_binding("<super> KEY_F") == 7
        sock.register_binding.assert_called_once_with(
            binding="<super> KEY_F", command=None, exec_always=True, mode="normal"
        )

    def test_register_binding_without_reply(self, ipc, sock):
        sock.register_binding.return_value = None

        assert ipc.register_binding("<super> KEY_F") is None


class TestErrors:
    def test_connection_error_drops_socket(self, ipc, sock, caplog):
        sock.get_view.side_effect = BrokenPipeError("pipe closed")

        assert ipc.get_view(1) is None
        assert ipc.sock is None
        assert not ipc.is_compositor_socket_set_up
        assert "IPC connection error in 'get_view'" in caplog.text

    def test_other_errors_return_none(self, ipc, sock):
        sock.get_output.side_effect = KeyError("workarea")

        assert ipc.get_output(0) is None
        assert ipc.sock is sock

    def test_no_socket_without_wayfire(self, monkeypatch, caplog):
        monkeypatch.delenv("WAYFIRE_SOCKET", raising=False)

        ipc = IPC()

        assert ipc.sock is None
        assert not ipc.is_connected()
        assert "WAYFIRE_SOCKET is not set" in caplog.text

    def test_ensure_connection_reconnects(self, ipc, sock, monkeypatch):
        sock.is_connected.return_value = False
        monkeypatch.delenv("WAYFIRE_SOCKET", raising=False)

        assert ipc.ensure_ipc_connection() is True
        assert ipc.sock is None
