import pytest

from simplessh.connection.base import BlockDirection
from simplessh.connection.base import EngineError
from simplessh.connection.base import RetryDeadlineExceeded
from simplessh.connection.base import WOULD_BLOCK
from simplessh.connection.waiter import drive
from simplessh.connection.waiter import wait_socket


class TestWaitSocket:
    def test_no_direction_returns_immediately(self, engine, sock_pair, mocker):
        engine.directions = BlockDirection.NONE
        selector = mocker.patch("simplessh.connection.waiter.selectors.DefaultSelector")

        assert wait_socket(sock_pair[0], engine, ceiling=5) is False
        selector.assert_not_called()

    def test_outbound_ready(self, engine, sock_pair):
        engine.directions = BlockDirection.OUTBOUND

        assert wait_socket(sock_pair[0], engine, ceiling=1) is True

    def test_inbound_not_ready_hits_ceiling(self, engine, sock_pair):
        engine.directions = BlockDirection.INBOUND

        assert wait_socket(sock_pair[0], engine, ceiling=0.05) is False

    def test_inbound_ready(self, engine, sock_pair):
        engine.directions = BlockDirection.INBOUND
        sock_pair[1].send(b"x")

        assert wait_socket(sock_pair[0], engine, ceiling=1) is True

    def test_both_directions(self, engine, sock_pair):
        engine.directions = BlockDirection.INBOUND | BlockDirection.OUTBOUND

        assert wait_socket(sock_pair[0], engine, ceiling=1) is True

    def test_default_ceiling_from_config(self, engine, sock_pair, mocker):
        mocker.patch("simplessh.connection.waiter.CONFIG.poll_interval", 0.01)
        engine.directions = BlockDirection.INBOUND

        assert wait_socket(sock_pair[0], engine) is False


class TestDrive:
    def test_returns_value_after_retries(self, mocker):
        operation = mocker.Mock(side_effect=[WOULD_BLOCK, WOULD_BLOCK, "done"])
        wait = mocker.Mock()

        assert drive(operation, wait) == "done"
        assert operation.call_count == 3
        assert wait.call_count == 2

    def test_none_is_a_value(self, mocker):
        wait = mocker.Mock()

        assert drive(mocker.Mock(return_value=None), wait) is None
        wait.assert_not_called()

    def test_hard_failure_propagates(self, mocker):
        operation = mocker.Mock(side_effect=[WOULD_BLOCK, EngineError("rejected")])

        with pytest.raises(EngineError, match="rejected"):
            drive(operation, mocker.Mock())

    def test_deadline(self, mocker):
        operation = mocker.Mock(return_value=WOULD_BLOCK)
        wait = mocker.Mock()

        with pytest.raises(RetryDeadlineExceeded, match="after 0s"):
            drive(operation, wait, deadline=0)

        assert operation.call_count == 1
        wait.assert_not_called()

    def test_deadline_is_an_engine_error(self):
        assert issubclass(RetryDeadlineExceeded, EngineError)

    def test_without_wait(self, mocker):
        operation = mocker.Mock(side_effect=[WOULD_BLOCK, 7])

        assert drive(operation) == 7
