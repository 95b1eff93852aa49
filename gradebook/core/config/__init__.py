__all__ = [
    "AuthSettings",
    "GradebookWebSettings",
    "LoggingSettings",
    "PersistentSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "WebSettings",
]


from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import PersistentSettings, StorageSettings
from .web import AuthSettings, GradebookWebSettings, WebSettings
