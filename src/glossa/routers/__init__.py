# routers/__init__.py
"""
WebSocket routers for the translation server.

- /ws/translate - batched translation requests with cache-checked dispatch
"""

from fastapi import APIRouter

from .translate import router as translate_router

router = APIRouter()
router.include_router(translate_router)

__all__ = ["router"]
