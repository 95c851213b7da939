from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..datamodels import AuthSession


class Backend(ABC):
    """Abstract base class for a record store holding links and tags."""

    def __init__(self, config: Dict[str, Any], session: Optional[AuthSession] = None):
        self.config = config
        self.session = session

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None and bool(self.session.token)

    @abstractmethod
    def list_records(
        self,
        collection: str,
        page: int,
        per_page: int,
        filter: str = "",
        sort: str = "",
        fields: Optional[List[str]] = None,
        expand: str = "",
    ) -> Dict[str, Any]:
        """Return one page of records: ``items``, ``page`` and ``totalItems``."""
        pass

    @abstractmethod
    def get_record(
        self,
        collection: str,
        record_id: str,
        fields: Optional[List[str]] = None,
        expand: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Return a single record."""
        pass

    @abstractmethod
    def create_record(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a record and return it."""
        pass

    @abstractmethod
    def delete_record(self, collection: str, record_id: str) -> None:
        """Delete a record."""
        pass

    @abstractmethod
    def authenticate(self, identity: str, password: str) -> AuthSession:
        """Log in and keep the resulting session."""
        pass
