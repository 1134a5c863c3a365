from .i_contact_store import ChangeHandler, IContactStore
from .i_app_context import BecameActiveListener, IAppContext
from .i_fetcher_delegate import SystemContactsFetcherDelegate

__all__ = [
    "ChangeHandler",
    "IContactStore",
    "BecameActiveListener",
    "IAppContext",
    "SystemContactsFetcherDelegate",
]
