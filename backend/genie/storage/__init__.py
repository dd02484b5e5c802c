"""Storage module - storage interface, local implementation and the thread repository."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .thread_repository import ThreadRepository, init_thread_repository, get_thread_repository

__all__ = [
    'StorageInterface', 'LocalStorage', 'ThreadRepository',
    'init_thread_repository', 'get_thread_repository'
]
