import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import config
from app.db.db import init_db
from app.routers import auth, comments, profile, reports

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="TuBarrio API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(profile.router, prefix="/profile", tags=["Profile"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])
app.include_router(comments.router, prefix="/reports", tags=["Comments"])


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/meta")
def meta():
    return {
        "types": config.REPORT_TYPES,
        "barrios": config.BARRIOS,
        "statuses": config.REPORT_STATUSES,
        "page_size": config.REPORTS_PER_PAGE,
    }
