__all__ = [
    "BootConfiguration",
    "di",
    "GradebookContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, GradebookContainer
from .provider import LoggingProvider, TimestampProvider
