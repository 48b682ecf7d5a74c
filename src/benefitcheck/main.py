from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from benefitcheck.config import get_client_base_url
from benefitcheck.db.database import close_db
from benefitcheck.db.interface.router import router as interface_router
from benefitcheck.db.patients.router import router as patients_router
from benefitcheck.pipeline.router import router as transactions_router
from benefitcheck.pipeline.router import status_router as verification_status_router
from benefitcheck.sensitive.router import router as reveal_router
from benefitcheck.utils.logger import logger


def get_version() -> str:
    """Get the installed package version."""
    try:
        return version("benefitcheck")
    except PackageNotFoundError:
        return "0.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("BenefitCheck API starting", version=get_version())
    yield
    await close_db()


app = FastAPI(
    title="BenefitCheck API",
    description="Insurance verification pipeline and protected patient data",
    version=get_version(),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_client_base_url()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transactions_router, prefix="/api")
app.include_router(verification_status_router, prefix="/api")
app.include_router(reveal_router, prefix="/api")
app.include_router(patients_router, prefix="/api")
app.include_router(interface_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"status": "ok", "message": "BenefitCheck API is running"}


@app.get("/healthcheck")
async def healthcheck():
    """Health check endpoint."""
    return {"status": "ok", "message": "BenefitCheck API is running"}
