# FastAPI Server for the crowdfunding engine

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from dotenv import load_dotenv

from database.config import init_db, SessionLocal
from database.models import User, UserRole
from core.exceptions import register_exception_handlers
from core.logging_config import setup_logging
from routers import (
    campaigns_router,
    rewards_router,
    pledges_router,
    admin_campaigns_router,
    admin_payouts_router,
)

load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="IdeaTube Crowdfunding API",
    description="Campaign lifecycle, reward inventory and settlement engine",
    version="1.0.0"
)

register_exception_handlers(app)


@app.on_event("startup")
def startup_event():
    # Initialize database tables using SQLAlchemy create_all
    # Alembic migrations remain the source of truth in production
    init_db()

    # Seed the first staff account
    staff_email = os.getenv("ADMIN_USER")
    if not staff_email:
        return
    db = SessionLocal()
    try:
        staff = db.query(User).filter(User.email == staff_email).first()
        if not staff:
            logger.info(f"Seeding staff user: {staff_email}")
            db.add(User(email=staff_email, name="Crowdfunding Staff", role=UserRole.STAFF))
            db.commit()
    except Exception as e:
        logger.error(f"Staff seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


# CORS Setup - Allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Required when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# CROWDFUNDING ROUTERS
# ============================================================================
app.include_router(campaigns_router, prefix="/api")
app.include_router(rewards_router, prefix="/api")
app.include_router(pledges_router, prefix="/api")
app.include_router(admin_campaigns_router, prefix="/api")
app.include_router(admin_payouts_router, prefix="/api")


# Health Check
@app.get("/")
def root():
    return {
        "message": "IdeaTube Crowdfunding API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
