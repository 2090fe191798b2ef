from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleet_admin import __version__
from fleet_admin.core.config import settings
from fleet_admin.core.logging import configure_logging
from fleet_admin.database import engine, Base
from fleet_admin import models  # noqa: F401  registers tables on Base.metadata
from fleet_admin.routes import (
    auth,
    destinations,
    drivers,
    notifications,
    relay,
    schedules,
    tracking,
    trips,
    trucks,
)

configure_logging()

Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Fleet management API: trucks, drivers, trips, schedules and live positions",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(trucks.router)
app.include_router(drivers.router)
app.include_router(drivers.documents_router)
app.include_router(trips.router)
app.include_router(trips.history_router)
app.include_router(trips.driver_history_router)
app.include_router(schedules.maintenance_router)
app.include_router(schedules.truck_schedules_router)
app.include_router(schedules.driver_schedules_router)
app.include_router(notifications.router)
app.include_router(destinations.router)
app.include_router(tracking.router)
app.include_router(relay.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
