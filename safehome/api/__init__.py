# safehome/api/__init__.py
"""
HTTP API и постоянное соединение.
"""
