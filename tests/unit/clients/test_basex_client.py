#!/usr/bin/env python3

from unittest.mock import MagicMock, patch

import pytest

from staffdb.clients.basex_client import BaseXStoreClient
from staffdb.core.errors import TransportError


class TestBaseXStoreClient:
    """Test suite for BaseX client"""

    @pytest.fixture
    def mock_session(self):
        """Mock BaseX session"""
        session = MagicMock()
        session.execute.return_value = ""
        return session

    @pytest.fixture
    def basex_client(self, mock_session):
        """BaseX client with mocked session"""
        with patch('staffdb.clients.basex_client.BaseXClient.Session', return_value=mock_session):
            client = BaseXStoreClient("localhost", 1984, "admin", "admin", "empresa")
            return client, mock_session

    def test_initialization_opens_database(self):
        """Test client connects and opens the database"""
        session = MagicMock()
        with patch('staffdb.clients.basex_client.BaseXClient.Session', return_value=session) as mock_cls:
            client = BaseXStoreClient("localhost", 1984, "admin", "secret", "empresa")

            assert client.host == "localhost"
            assert client.port == 1984
            assert client.database == "empresa"
            mock_cls.assert_called_once_with("localhost", 1984, "admin", "secret")
            session.execute.assert_called_once_with("OPEN empresa")

    def test_connection_failure_raises_transport_error(self):
        """Test unreachable server surfaces as TransportError"""
        with patch('staffdb.clients.basex_client.BaseXClient.Session',
                   side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(TransportError, match="Cannot connect"):
                BaseXStoreClient("localhost", 1984, "admin", "admin", "empresa")

    def test_open_failure_releases_socket(self):
        """Test a failing OPEN closes the session before raising"""
        session = MagicMock()
        session.execute.side_effect = IOError("Database 'empresa' was not found.")
        with patch('staffdb.clients.basex_client.BaseXClient.Session', return_value=session):
            with pytest.raises(TransportError, match="OPEN empresa"):
                BaseXStoreClient("localhost", 1984, "admin", "admin", "empresa")

        session.close.assert_called_once()

    def test_query_success(self, basex_client):
        """Test successful query execution closes the handle"""
        client, mock_session = basex_client
        handle = MagicMock()
        handle.execute.return_value = "Sales"
        mock_session.query.return_value = handle

        result = client.query('data(/root/departments/dept[@codi = "D1"]/nom)')

        assert result == "Sales"
        mock_session.query.assert_called_once_with('data(/root/departments/dept[@codi = "D1"]/nom)')
        handle.close.assert_called_once()

    def test_query_renders_query_objects(self, basex_client):
        """Test query objects are sent as their rendered text"""
        client, mock_session = basex_client
        handle = MagicMock()
        handle.execute.return_value = ""
        mock_session.query.return_value = handle

        class FakeQuery:
            def __str__(self):
                return "data(/root)"

        client.query(FakeQuery())

        mock_session.query.assert_called_once_with("data(/root)")

    def test_query_error_handling(self, basex_client):
        """Test server-side query errors become TransportError and still release the handle"""
        client, mock_session = basex_client
        handle = MagicMock()
        handle.execute.side_effect = IOError("Stopped at line 1: Syntax error")
        mock_session.query.return_value = handle

        with pytest.raises(TransportError) as exc_info:
            client.query("INVALID QUERY")

        assert exc_info.value.query == "INVALID QUERY"
        handle.close.assert_called_once()

    def test_undecodable_reply_is_transport_error(self, basex_client):
        """Test a reply that is not valid UTF-8 becomes TransportError"""
        client, mock_session = basex_client
        handle = MagicMock()
        handle.execute.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        mock_session.query.return_value = handle

        with pytest.raises(TransportError) as exc_info:
            client.query("data(/root)")

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        handle.close.assert_called_once()

    def test_undecodable_command_output_is_transport_error(self, basex_client):
        """Test execute() maps decoding failures to TransportError"""
        client, mock_session = basex_client
        mock_session.execute.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        with pytest.raises(TransportError) as exc_info:
            client.execute("INFO DB")

        assert exc_info.value.query == "INFO DB"

    def test_query_after_close_fails(self, basex_client):
        """Test the client refuses queries once closed"""
        client, _ = basex_client

        client.close()

        with pytest.raises(TransportError, match="closed"):
            client.query("data(/root)")

    def test_close_connection(self, basex_client):
        """Test closing sends CLOSE and releases the socket"""
        client, mock_session = basex_client

        client.close()

        mock_session.execute.assert_called_with("CLOSE")
        mock_session.close.assert_called_once()
        assert client.session is None

    def test_close_releases_socket_when_close_command_fails(self, basex_client):
        """Test the socket is released even if CLOSE fails"""
        client, mock_session = basex_client
        mock_session.execute.side_effect = IOError("connection reset")

        with pytest.raises(TransportError):
            client.close()

        mock_session.close.assert_called_once()
        assert client.session is None

    def test_close_twice_is_noop(self, basex_client):
        """Test a second close does nothing"""
        client, mock_session = basex_client

        client.close()
        client.close()

        mock_session.close.assert_called_once()

    def test_context_manager_closes(self, basex_client):
        """Test the client closes on leaving a with block"""
        client, mock_session = basex_client

        with client:
            pass

        mock_session.close.assert_called_once()
