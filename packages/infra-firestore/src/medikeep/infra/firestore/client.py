"""Firebase Admin app and Firestore async client factory.

The firebase_admin SDK keeps a process-wide registry of initialized apps;
this factory initializes the app once (service account or Application
Default Credentials) and hands out the async Firestore client bound to it.

Example:
    >>> from medikeep.infra.firestore.client import get_firestore_factory
    >>> factory = get_firestore_factory()
    >>> client = factory.get_client()
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import firebase_admin
from firebase_admin import credentials, firestore_async

from medikeep.infra.firestore.settings import FirebaseSettings, get_firebase_settings

if TYPE_CHECKING:
    from google.cloud.firestore import AsyncClient

logger = logging.getLogger(__name__)


class FirestoreClientFactory:
    """Owns the firebase_admin app and the async Firestore client.

    Usage:
        factory = FirestoreClientFactory(FirebaseSettings())
        client = factory.get_client()
        ...
        factory.close()
    """

    def __init__(self, settings: FirebaseSettings) -> None:
        self._settings = settings
        self._app: firebase_admin.App | None = None
        self._client: AsyncClient | None = None

    @classmethod
    def from_env(cls) -> FirestoreClientFactory:
        """Create factory from ``FIREBASE_*`` environment variables."""
        return cls(get_firebase_settings())

    @property
    def settings(self) -> FirebaseSettings:
        return self._settings

    def get_app(self) -> firebase_admin.App:
        """Return the firebase_admin app, initializing it on first use.

        An app already registered under the configured name (for example by
        the auth package) is reused rather than initialized twice.
        """
        if self._app is not None:
            return self._app

        name = self._settings.app_name
        try:
            self._app = firebase_admin.get_app(name)
        except ValueError:
            options: dict[str, Any] = {}
            if self._settings.project_id:
                options["projectId"] = self._settings.project_id
            self._app = firebase_admin.initialize_app(
                credential=self._build_credential(),
                options=options or None,
                name=name,
            )
            logger.info(
                "firebase_app_initialized",
                extra={
                    "app_name": name,
                    "project_id": self._settings.project_id,
                    "emulator_host": self._settings.emulator_host,
                },
            )
        return self._app

    def get_client(self) -> AsyncClient:
        """Return the async Firestore client for the configured database."""
        if self._client is None:
            self._client = firestore_async.client(
                app=self.get_app(),
                database_id=self._settings.database,
            )
        return self._client

    def close(self) -> None:
        """Drop the client and delete the firebase_admin app.

        Safe to call multiple times.
        """
        self._client = None
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None

    def _build_credential(self) -> credentials.Base:
        if self._settings.credentials_path:
            return credentials.Certificate(self._settings.credentials_path)
        return credentials.ApplicationDefault()


@lru_cache(maxsize=1)
def get_firestore_factory() -> FirestoreClientFactory:
    """Get the default FirestoreClientFactory singleton."""
    return FirestoreClientFactory.from_env()
