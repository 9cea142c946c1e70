from fastapi import APIRouter
from shopassist.api.chat import router as chat_router
from shopassist.api.products import router as products_router
from shopassist.api.sessions import router as sessions_router

router = APIRouter()
router.include_router(chat_router)
router.include_router(products_router)
router.include_router(sessions_router)
