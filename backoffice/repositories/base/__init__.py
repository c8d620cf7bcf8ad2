from backoffice.repositories.base.base_repository import BaseRepository, Page

__all__ = ["BaseRepository", "Page"]
