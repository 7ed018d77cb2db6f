"""
Session Store - durable storage of the credential and active tenant.

Operations:
- get: synchronous read of the current Session, never raises
- set: write credential and tenant id (None clears that value only)
- clear: remove both values

Implementations:
- InMemorySessionStore: process-local, lost on exit
- FileSessionStore: JSON document on disk, read back at process start
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .models import Session
from .types import SessionMode

logger = logging.getLogger(__name__)

# Stable keys of the two persisted values
TOKEN_KEY = "auth.token"
TENANT_KEY = "auth.orgId"


class SessionStore(ABC):
    """Interface for session storage."""

    def __init__(self, mode: SessionMode = SessionMode.COOKIE) -> None:
        self.mode = SessionMode(mode)

    @abstractmethod
    def _read(self) -> dict[str, str]:
        """Return the persisted key/value pairs."""
        pass

    @abstractmethod
    def _write(self, values: dict[str, str]) -> None:
        """Replace the persisted key/value pairs."""
        pass

    def get(self) -> Session:
        values = self._read()
        return Session(
            mode=self.mode,
            credential=values.get(TOKEN_KEY) or None,
            tenant_id=values.get(TENANT_KEY) or None,
        )

    def set(self, credential: Optional[str], tenant_id: Optional[str]) -> Session:
        values: dict[str, str] = {}
        if credential:
            values[TOKEN_KEY] = credential
        if tenant_id:
            values[TENANT_KEY] = str(tenant_id)
        self._write(values)
        return self.get()

    def set_tenant(self, tenant_id: Optional[str]) -> Session:
        """Replace the tenant id, keeping the current credential."""
        return self.set(self.get().credential, tenant_id)

    def clear(self) -> None:
        self._write({})


class InMemorySessionStore(SessionStore):
    """Session store kept in process memory."""

    def __init__(
        self,
        mode: SessionMode = SessionMode.COOKIE,
        credential: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> None:
        super().__init__(mode)
        self._values: dict[str, str] = {}
        if credential or tenant_id:
            self.set(credential, tenant_id)

    def _read(self) -> dict[str, str]:
        return dict(self._values)

    def _write(self, values: dict[str, str]) -> None:
        self._values = dict(values)


class FileSessionStore(SessionStore):
    """
    Session store backed by a JSON file.

    The file is loaded once on construction; afterwards reads are served from
    the in-process copy so a read always observes this process's last write.
    Every mutation is written through atomically.
    """

    def __init__(self, path: Union[str, Path], mode: SessionMode = SessionMode.COOKIE) -> None:
        super().__init__(mode)
        self.path = Path(path).expanduser()
        self._values = self._load()

    def _load(self) -> dict[str, str]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed session file %s", self.path)
            return {}
        return {k: str(raw[k]) for k in (TOKEN_KEY, TENANT_KEY) if raw.get(k)}

    def _read(self) -> dict[str, str]:
        return dict(self._values)

    def _write(self, values: dict[str, str]) -> None:
        self._values = dict(values)
        if not values:
            self.path.unlink(missing_ok=True)
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(values, f)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
