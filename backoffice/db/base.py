"""SQLAlchemy Base class for all models."""
from backoffice.models.base.base_model import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    import backoffice.models  # noqa: F401


import_models()

__all__ = ["Base", "import_models"]
