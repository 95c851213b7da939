from __future__ import annotations

from typing import Any, Dict, Optional, Type

from ..datamodels import AuthSession
from .base import Backend
from .pocketbase import PocketBaseBackend

AVAILABLE_BACKENDS: Dict[str, Type[Backend]] = {
    "pocketbase": PocketBaseBackend,
}


def get_backend(config: Dict[str, Any], session: Optional[AuthSession] = None) -> Backend:
    backend_name = config.get("backend", "pocketbase")
    backend_class = AVAILABLE_BACKENDS.get(backend_name)
    if not backend_class:
        raise ValueError(f"Unknown backend: {backend_name}")
    return backend_class(config, session=session)
