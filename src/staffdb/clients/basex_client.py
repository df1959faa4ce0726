#!/usr/bin/env python3
"""
BaseX Database Client

A low-level client wrapper for the BaseX XML database server.
Handles session management and query execution, translating client
failures into TransportError.

This client is pure infrastructure - it contains no business logic.
Use the services layer for business logic that uses this client.
"""

import logging
import os

from BaseXClient import BaseXClient

from ..core.errors import TransportError

logger = logging.getLogger(__name__)


class BaseXStoreClient:
    """
    BaseX client bound to a single session and database.

    One request is in flight at a time: every query handle is closed
    before the next one is opened on the same session.

    Example:
        ```python
        client = BaseXStoreClient("localhost", 1984, "admin", "admin", "empresa")
        try:
            name = client.query('data(/root/departments/dept[@codi = "D1"]/nom)')
        finally:
            client.close()
        ```

    Environment Variables:
        - BASEX_HOST: Server host (default: localhost)
        - BASEX_PORT: Server port (default: 1984)
        - BASEX_USER: Authentication username (default: admin)
        - BASEX_PASSWORD: Authentication password (default: admin)
        - BASEX_DATABASE: Database to open (default: empresa)
    """

    def __init__(self, host: str = None, port: int = None, user: str = None,
                 password: str = None, database: str = None):
        """
        Open a session and the configured database.

        Args:
            host: Server host. If None, reads from BASEX_HOST env var.
            port: Server port. If None, reads from BASEX_PORT env var.
            user: Authentication username. If None, reads from BASEX_USER env var.
            password: Authentication password. If None, reads from BASEX_PASSWORD env var.
            database: Database name. If None, reads from BASEX_DATABASE env var.

        Raises:
            TransportError: If the server is unreachable, rejects the login,
                or the database cannot be opened
        """
        self.host = host or os.getenv("BASEX_HOST", "localhost")
        self.port = port or int(os.getenv("BASEX_PORT", "1984"))
        self.user = user or os.getenv("BASEX_USER", "admin")
        self.password = password or os.getenv("BASEX_PASSWORD", "admin")
        self.database = database or os.getenv("BASEX_DATABASE", "empresa")
        self.session = None

        try:
            self.session = BaseXClient.Session(self.host, self.port, self.user, self.password)
        except OSError as e:
            logger.error(f"Failed to connect to BaseX at {self.host}:{self.port}: {e}")
            raise TransportError(f"Cannot connect to BaseX at {self.host}:{self.port}: {e}") from e

        try:
            self.execute(f"OPEN {self.database}")
        except TransportError:
            self._release()
            raise
        logger.info(f"Opened BaseX database '{self.database}' at {self.host}:{self.port}")

    def execute(self, command: str) -> str:
        """
        Execute a database command (e.g. ``OPEN empresa``, ``CLOSE``).

        Args:
            command: BaseX command string

        Returns:
            Command output as text

        Raises:
            TransportError: If the session is closed or the command fails
        """
        if self.session is None:
            raise TransportError("BaseX session is closed", query=command)
        try:
            return self.session.execute(command)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"BaseX command failed: {command}: {e}")
            raise TransportError(f"Command '{command}' failed: {e}", query=command) from e

    def query(self, xquery) -> str:
        """
        Run an XQuery and return its serialized result.

        Args:
            xquery: XQuery text, or any query object whose ``str()`` renders it

        Returns:
            Serialized result. Sequences come back newline-delimited; an empty
            string means no match or no value.

        Raises:
            TransportError: If the session is closed, the socket fails, the
                server rejects the query, or the reply is not valid UTF-8
        """
        text = str(xquery)
        if self.session is None:
            raise TransportError("BaseX session is closed", query=text)

        logger.debug(f"Executing XQuery: {text}")
        handle = None
        try:
            handle = self.session.query(text)
            return handle.execute()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"XQuery failed: {text}: {e}")
            raise TransportError(f"Query failed: {e}", query=text) from e
        finally:
            if handle is not None:
                try:
                    handle.close()
                except OSError as e:
                    logger.warning(f"Failed to release query handle: {e}")

    def close(self):
        """
        Close the database and release the session.

        The socket is released even when the ``CLOSE`` command fails; that
        failure is re-raised afterwards. Calling close twice is a no-op.
        """
        if self.session is None:
            return
        try:
            self.execute("CLOSE")
        finally:
            self._release()
            logger.info(f"Closed BaseX session to {self.host}:{self.port}")

    def _release(self):
        session, self.session = self.session, None
        try:
            session.close()
        except OSError as e:
            logger.warning(f"Error while closing BaseX socket: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
