from backoffice.models.content.content import Content

__all__ = ["Content"]
