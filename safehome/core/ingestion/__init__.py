# safehome/core/ingestion/__init__.py
from safehome.core.ingestion.service import IngestionService

__all__ = ["IngestionService"]
