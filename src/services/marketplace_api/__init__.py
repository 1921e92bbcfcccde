# src/services/marketplace_api/__init__.py
"""
HTTP API маркетплейса автосалонов.
"""
