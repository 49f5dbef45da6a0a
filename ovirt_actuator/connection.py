"""Cached, self-healing engine session."""

from __future__ import annotations

import threading

from loguru import logger

from ovirt_actuator.api.model import Credentials
from ovirt_actuator.api.protocols import SecretStore, SessionFactory, VirtualizationSession
from ovirt_actuator.errors import ActuatorError, RemoteCallError

log = logger.bind(component="connection")


class ConnectionProvider:
    """Hands out an authenticated session, re-logging in when it goes stale.

    One provider is shared by every reconciliation of an actuator. The
    liveness probe and the rebuild happen under a single lock, so racing
    callers never observe a half-built session and at most one login is in
    flight.

    Args:
        secrets: Store holding the credentials secret.
        session_factory: Builds a new session from credentials.
    """

    def __init__(self, secrets: SecretStore, session_factory: SessionFactory) -> None:
        self._secrets = secrets
        self._session_factory = session_factory
        self._session: VirtualizationSession | None = None
        self._lock = threading.Lock()

    def get_connection(self, namespace: str, secret_name: str) -> VirtualizationSession:
        """Return a live session, creating one if needed.

        Raises:
            RemoteCallError: If the credentials cannot be read or the login fails.
            ConfigurationError: If the credentials secret is incomplete.
        """
        with self._lock:
            if self._session is not None and self._is_alive(self._session):
                return self._session

            # session expired or never created, log in again
            session = self._connect(namespace, secret_name)
            self._session = session
            return session

    def _connect(self, namespace: str, secret_name: str) -> VirtualizationSession:
        try:
            data = self._secrets.get_secret(namespace, secret_name)
        except ActuatorError:
            raise
        except Exception as e:
            raise RemoteCallError(
                f"failed getting credentials secret {namespace}/{secret_name}: {e}"
            ) from e

        creds = Credentials.from_secret(data)
        try:
            session = self._session_factory(creds)
        except Exception as e:
            raise RemoteCallError(f"failed to connect to {creds.url}: {e}") from e

        log.info("Connected to engine {url} as {user}", url=creds.url, user=creds.username)
        return session

    @staticmethod
    def _is_alive(session: VirtualizationSession) -> bool:
        try:
            return bool(session.test())
        except Exception as e:
            log.debug("Session liveness test failed: {err}", err=e)
            return False
