"""Main FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hrtrain.config import IMPORT_SESSION_TTL, LOG_LEVEL, SEED_DEFAULTS
from hrtrain.database import engine, Base, SessionLocal
from hrtrain.api.routes import router
from hrtrain.services.batch_import import ImportSessionRegistry
from hrtrain.seed import seed_defaults
# Import models to register them with SQLAlchemy Base
from hrtrain.models.domain import Course, User, CompanyPermission
from hrtrain.models.audit import AuditEvent

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

if SEED_DEFAULTS:
    logger.info("Seeding default users and sample courses into empty tables")
    with SessionLocal() as db:
        seed_defaults(db)

app = FastAPI(
    title="HR Training Records",
    description="Training-course records with company/department scoped visibility and CSV batch import.",
    version="0.1.0"
)

# Import sessions live between requests, owned by the app
app.state.import_sessions = ImportSessionRegistry(ttl_seconds=IMPORT_SESSION_TTL)

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For MVP - restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api", tags=["Training"])


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "HR Training Records"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
