"""
Tests for the connection acceptor.

The listener, launcher and signal coordinator are mocked; the registry is
real so registration and reaping can be checked end to end.
"""

import errno
import signal
import socket
from unittest.mock import Mock, patch

import pytest

from netcatd.config import Passthrough
from netcatd.exceptions import LaunchError
from netcatd.net import Listener, PeerAddress
from netcatd.process import ChildRegistry, Connection, LaunchedProcess, ProcessLauncher
from netcatd.server import INTERRUPTED_STATUS, Acceptor, SignalCoordinator

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def peer():
    return PeerAddress(host="203.0.113.5", port=40000, family=socket.AF_INET)


@pytest.fixture
def conn_sock():
    return Mock(spec=socket.socket)


@pytest.fixture
def mock_listener(conn_sock, peer):
    listener = Mock(spec=Listener)
    listener.accept.return_value = (conn_sock, peer)
    return listener


@pytest.fixture
def mock_launcher():
    launcher = Mock(spec=ProcessLauncher)
    launcher.launch.return_value = 100
    return launcher


@pytest.fixture
def mock_signals():
    signals = Mock(spec=SignalCoordinator)
    signals.shutdown_signal = signal.SIGTERM
    return signals


@pytest.fixture
def acceptor(lg, mock_listener, mock_launcher, mock_signals):
    return Acceptor(
        lg, mock_listener, mock_launcher, Passthrough(stdout=True), mock_signals
    )


def _exited(code):
    """Raw wait status of a child that exited with code."""
    return code << 8


# =============================================================================
# Test accept_one
# =============================================================================


@pytest.mark.unit
class TestAcceptOne:
    def test_launches_and_registers(self, acceptor, mock_launcher, peer, conn_sock):
        assert acceptor.accept_one() == 100

        connection = mock_launcher.launch.call_args.args[0]
        assert isinstance(connection, Connection)
        assert connection.sock is conn_sock
        assert connection.peer == peer
        assert connection.passthrough == Passthrough(stdout=True)

        child = acceptor.registry.get(100)
        assert child is not None
        assert child.peer == peer

    def test_closes_parent_copy(self, acceptor, conn_sock):
        acceptor.accept_one()
        conn_sock.close.assert_called_once_with()

    def test_logs_connected(self, acceptor, log_stream):
        acceptor.accept_one()

        output = log_stream.getvalue()
        assert "[I] connected" in output
        assert "[peer:203.0.113.5] [pid:100]" in output

    def test_retries_interrupted_accept(self, acceptor, mock_listener, conn_sock, peer):
        mock_listener.accept.side_effect = [InterruptedError(), (conn_sock, peer)]

        assert acceptor.accept_one() == 100
        assert mock_listener.accept.call_count == 2

    def test_nothing_pending(self, acceptor, mock_listener, mock_launcher):
        mock_listener.accept.side_effect = BlockingIOError()

        assert acceptor.accept_one() is None
        mock_launcher.launch.assert_not_called()

    def test_accept_error_logged(self, acceptor, mock_listener, mock_launcher, log_stream):
        mock_listener.accept.side_effect = OSError(
            errno.EMFILE, "Too many open files"
        )

        assert acceptor.accept_one() is None
        mock_launcher.launch.assert_not_called()
        assert "[E] accept" in log_stream.getvalue()
        assert "[error:Too many open files]" in log_stream.getvalue()

    def test_launch_failure(self, acceptor, mock_launcher, conn_sock, log_stream):
        mock_launcher.launch.side_effect = LaunchError("fork failed", error="EAGAIN")

        assert acceptor.accept_one() is None
        assert len(acceptor.registry) == 0
        conn_sock.close.assert_called_once_with()
        assert "launch failed" in log_stream.getvalue()
        assert "connected" not in log_stream.getvalue()

    def test_same_peer_twice(self, acceptor, mock_launcher):
        mock_launcher.launch.side_effect = [100, 101]

        acceptor.accept_one()
        acceptor.accept_one()

        assert sorted(c.pid for c in acceptor.registry) == [100, 101]


# =============================================================================
# Test reap_children
# =============================================================================


@pytest.mark.unit
class TestReapChildren:
    def test_reaps_known_child(self, acceptor, peer, log_stream):
        acceptor.registry.add(LaunchedProcess(pid=100, peer=peer))

        with patch(
            "netcatd.server.acceptor.os.waitpid",
            side_effect=[(100, _exited(3)), (0, 0)],
        ):
            assert acceptor.reap_children() == [100]

        assert 100 not in acceptor.registry
        output = log_stream.getvalue()
        assert "[I] connection lost" in output
        assert "[peer:203.0.113.5]" in output
        assert "[pid:100]" in output
        assert "[status:3]" in output

    def test_reaps_every_exited_child(self, acceptor, peer):
        for pid in (100, 101, 102):
            acceptor.registry.add(LaunchedProcess(pid=pid, peer=peer))

        with patch(
            "netcatd.server.acceptor.os.waitpid",
            side_effect=[(100, 0), (102, 0), ChildProcessError()],
        ):
            assert acceptor.reap_children() == [100, 102]

        assert [c.pid for c in acceptor.registry] == [101]

    def test_unknown_pid(self, acceptor, log_stream):
        with patch(
            "netcatd.server.acceptor.os.waitpid", side_effect=[(555, 0), (0, 0)]
        ):
            acceptor.reap_children()

        output = log_stream.getvalue()
        assert "[W] unknown connection lost" in output
        assert "[pid:555]" in output

    def test_no_children(self, acceptor):
        with patch(
            "netcatd.server.acceptor.os.waitpid", side_effect=ChildProcessError()
        ):
            assert acceptor.reap_children() == []

    def test_killed_child_status(self, acceptor, peer, log_stream):
        acceptor.registry.add(LaunchedProcess(pid=100, peer=peer))

        with patch(
            "netcatd.server.acceptor.os.waitpid",
            side_effect=[(100, signal.SIGKILL), (0, 0)],
        ):
            acceptor.reap_children()

        assert f"[status:-{int(signal.SIGKILL)}]" in log_stream.getvalue()

    def test_wakeup_drains_then_reaps(self, acceptor, mock_signals):
        mock_signals.drain.return_value = {signal.SIGCHLD}

        with patch(
            "netcatd.server.acceptor.os.waitpid", side_effect=ChildProcessError()
        ) as waitpid:
            acceptor._on_wakeup()

        mock_signals.drain.assert_called_once_with()
        waitpid.assert_called_once()


# =============================================================================
# Test serve
# =============================================================================


@pytest.mark.unit
class TestServe:
    def test_interrupt_closes_listener(
        self, acceptor, mock_listener, mock_signals, log_stream
    ):
        with patch.object(acceptor, "run", side_effect=KeyboardInterrupt()):
            assert acceptor.serve() == INTERRUPTED_STATUS == 2

        mock_signals.install.assert_called_once_with()
        mock_signals.restore.assert_called_once_with()
        mock_listener.close.assert_called_once_with()
        assert "[signal:SIGTERM]" in log_stream.getvalue()

    def test_unexpected_error_propagates(self, acceptor, mock_listener, mock_signals):
        with patch.object(acceptor, "run", side_effect=OSError(errno.EBADF, "bad fd")):
            with pytest.raises(OSError):
                acceptor.serve()

        mock_listener.close.assert_called_once_with()
        mock_signals.restore.assert_called_once_with()

    def test_defaults(self, lg, mock_listener, mock_launcher):
        acceptor = Acceptor(lg, mock_listener, mock_launcher, Passthrough())

        assert isinstance(acceptor.signals, SignalCoordinator)
        assert isinstance(acceptor.registry, ChildRegistry)
