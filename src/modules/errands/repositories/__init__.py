"""Errand repositories package."""

from modules.errands.repositories.django_repository import ErrandDjangoRepository
from modules.errands.repositories.interfaces import IErrandRepository

__all__ = ["IErrandRepository", "ErrandDjangoRepository"]
