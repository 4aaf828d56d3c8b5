"""Account stores."""

from .base import AccountStore
from .memory import InMemoryAccountStore
from .sql import SQLAccountStore

__all__ = ["AccountStore", "InMemoryAccountStore", "SQLAccountStore"]
