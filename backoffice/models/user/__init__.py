from backoffice.models.user.user import User

__all__ = ["User"]
