"""
============================================================
TARJETA CRC — infrastructure/services/firebase_app.py
============================================================
Class: FirebaseClientFactory

Responsibilities:
  - Inicializar la app de firebase_admin una sola vez (lazy, thread-safe).
  - Entregar el cliente de Firestore y la App para firebase_admin.auth.

Collaborators:
  - firebase_admin (initialize_app, credentials, firestore)
  - crosscutting.config (firebase_project_id, firebase_credentials_path)

Constraints:
  - Sin path de credenciales se usan Application Default Credentials.
  - Nombre de app propio: no pisa una app [DEFAULT] creada por otro código.
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from ...crosscutting.logger import logger

_APP_NAME = "storefront"


class FirebaseClientFactory:
    def __init__(self, *, project_id: str = "", credentials_path: str = "") -> None:
        self._project_id = project_id
        self._credentials_path = credentials_path
        self._lock = Lock()
        self._app: firebase_admin.App | None = None
        self._firestore: Any = None

    def app(self) -> firebase_admin.App:
        with self._lock:
            if self._app is None:
                cred = (
                    credentials.Certificate(self._credentials_path)
                    if self._credentials_path
                    else credentials.ApplicationDefault()
                )
                options = {"projectId": self._project_id} if self._project_id else None
                self._app = firebase_admin.initialize_app(cred, options, name=_APP_NAME)
                logger.info(
                    "Firebase app inicializada",
                    extra={"project_id": self._project_id or "(adc)"},
                )
            return self._app

    def firestore(self) -> Any:
        if self._firestore is None:
            client = firestore.client(app=self.app())
            with self._lock:
                if self._firestore is None:
                    self._firestore = client
        return self._firestore
