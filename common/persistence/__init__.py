"""持久层入口，提供 Session/模型导出。"""

from .database import get_default_session_factory, get_engine, get_session_factory, session_scope
from . import models
from .repository import UserRepository

__all__ = [
    "get_default_session_factory",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "models",
    "UserRepository",
]
