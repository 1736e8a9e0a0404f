from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docgov import __version__
from docgov.api.routers import activities, approvals, documents, policies, tasks
from docgov.core.config import get_settings
from docgov.core.errors import WorkflowError
from docgov.core.logger import configure_from_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_from_settings(settings)
    if settings.store_backend == "sql":
        from docgov.db.session import engine, init_db
        init_db(engine)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Approval workflow for documents, tasks and policies",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


# Include routers
app.include_router(documents.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(approvals.router, prefix="/api")
app.include_router(policies.router, prefix="/api")
app.include_router(activities.router, prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}
