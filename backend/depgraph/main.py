"""
FastAPI application entry point for the Schema Dependency API.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from depgraph.config import settings
from depgraph.routers import graph, nodes, search
from depgraph.services.schema_loader import SchemaNotLoadedError, get_schema_loader

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the application schema on startup."""
    logger.info("Starting Schema Dependency API...")
    try:
        get_schema_loader().load()
        logger.info("Schema loaded successfully")
    except FileNotFoundError as e:
        logger.warning(f"Schema file not found: {e}. Set SCHEMA_FILE_PATH to an exported application schema.")
    except ValueError as e:
        logger.error(f"Failed to load schema: {e}")
    yield
    logger.info("Shutting down Schema Dependency API...")


app = FastAPI(
    title=settings.APP_NAME,
    description="API for exploring dependencies inside a low-code application schema",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchemaNotLoadedError)
async def schema_not_loaded_handler(request: Request, exc: SchemaNotLoadedError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Include routers
app.include_router(nodes.router, prefix="/api/v1")
app.include_router(graph.router, prefix="/api/v1")
app.include_router(search.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "schema_loaded": get_schema_loader().graph is not None}
