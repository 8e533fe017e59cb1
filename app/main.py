# RecipeBox API Main Entry Point
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from .settings import settings
from .routers.ready import router as ready_router
from .routers.auth import router as auth_router
from .routers.recipes import router as recipes_router
from .routers.images import router as images_router
from .routers.history import router as history_router
from .routers.scheduled_meals import router as scheduled_meals_router
from .routers.llm_models import router as models_router
from .routers.suggestions import router as suggestions_router

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("recipebox")

# Rate limiter (per-IP)
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

app = FastAPI(title="RecipeBox API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(images_router, prefix="/api", tags=["images"])
app.include_router(history_router, prefix="/api", tags=["history"])
app.include_router(scheduled_meals_router, prefix="/api", tags=["planner"])
app.include_router(models_router, prefix="/api", tags=["models"])
app.include_router(suggestions_router, prefix="/api", tags=["suggestions"])

logger.info(f"RecipeBox API ready (image provider: {settings.image_provider})")
