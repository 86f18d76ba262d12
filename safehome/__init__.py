# safehome/__init__.py
"""
SafeHome: backend семейного обмена геолокацией.
"""

__version__ = "1.0.0"
