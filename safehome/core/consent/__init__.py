# safehome/core/consent/__init__.py
from safehome.core.consent.service import ConsentGate

__all__ = ["ConsentGate"]
