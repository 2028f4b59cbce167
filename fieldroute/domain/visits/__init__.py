"""Visits domain - visit listings and the visit status lifecycle"""

from .router import router

__all__ = ["router"]
