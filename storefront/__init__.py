# storefront/__init__.py
"""Storefront checkout and purchase-state pipeline"""
from .errors import DomainError, ErrorCode
from .app import Storefront

__version__ = "0.1.0"

__all__ = [
    'Storefront',
    'DomainError',
    'ErrorCode'
]
