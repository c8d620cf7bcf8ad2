from backoffice.repositories.content.content_repository import ContentRepository

__all__ = ["ContentRepository"]
