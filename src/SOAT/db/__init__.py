# src/SOAT/db/__init__.py
# Don't import session on package import; it reads settings and builds engines
from .base import Base  # safe to import

__all__ = ["Base"]
