import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import create_db_and_tables
from routes.auth import router as auth_router
from routes.enterprises import router as enterprises_router
from routes.crm import router as crm_router
from routes.team import router as team_router
from routes.subscription import router as subscription_router
from routes.onboarding import router as onboarding_router
from routes.admin import router as admin_router
from routes.favorites import router as favorites_router
from routes.search import router as search_router
from routes.copilot import router as copilot_router
from routes.partners import router as partners_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("✅ Database tables created on startup.")
    yield
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="Earth Care Network Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================
# ⚠️ Validation errors are reported as 400
# =========================================
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(enterprises_router, prefix="/api/enterprises", tags=["Enterprises"])
app.include_router(crm_router, prefix="/api/crm", tags=["CRM"])
app.include_router(team_router, prefix="/api/crm", tags=["Team"])
app.include_router(subscription_router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(onboarding_router, prefix="/api/onboarding", tags=["Onboarding"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
app.include_router(favorites_router, prefix="/api/favorites", tags=["Favorites"])
app.include_router(search_router, prefix="/api/search", tags=["Search"])
app.include_router(copilot_router, prefix="/api/crm", tags=["Copilot"])
app.include_router(partners_router, prefix="/api", tags=["Partners"])


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to the Earth Care Network Backend!"}
