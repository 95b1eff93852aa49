__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "GradebookContainer",
    "PersistentContainer",
    "StorageContainer",
]

from .auth import AuthContainer
from .gradebook import BootConfiguration, GradebookContainer
from .storage import PersistentContainer, StorageContainer
