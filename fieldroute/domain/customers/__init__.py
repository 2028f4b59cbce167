"""
Customer domain - customer records plus archive / reactivate of their schedules
"""

from .router import router

__all__ = ["router"]
