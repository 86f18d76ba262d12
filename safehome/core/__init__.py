# safehome/core/__init__.py
"""
Доменный слой (Core Domain).
Связи, согласие, геолокация и аудит поверх репозиториев.
"""
