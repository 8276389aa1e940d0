"""SQLAlchemy Base class for all models."""
from tiffin.models.base import Base


def import_models() -> None:
    """Import all models to register them with SQLAlchemy metadata."""
    import tiffin.models  # noqa: F401


import_models()

__all__ = ["Base", "import_models"]
