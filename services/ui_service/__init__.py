"""
UI service - page renderers for the guarded routes.
"""

from .pages import PAGE_RENDERERS, PageContext

__all__ = [
    'PAGE_RENDERERS',
    'PageContext'
]
