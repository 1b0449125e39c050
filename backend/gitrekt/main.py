from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from gitrekt.core.config import settings
from gitrekt.database.mongodb import connect_db, close_db, ensure_indexes
from gitrekt.services.roast_scheduler import roast_scheduler
from gitrekt.utils.logger import setup_logging
from gitrekt.api.routes import webhook, cron, pending_roasts, judge, track, roasts


app = FastAPI(title=settings.APP_NAME)

setup_logging(settings.DEBUG)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup():
    await connect_db()
    await ensure_indexes()
    if settings.SWEEP_ON_STARTUP:
        roast_scheduler.start()

@app.on_event("shutdown")
async def shutdown():
    await roast_scheduler.stop()
    await close_db()

@app.get("/")
def root():
    return {"message": "Backend running"}


# Include routers
app.include_router(webhook.router, prefix="/webhook", tags=["Webhook"])
app.include_router(cron.router, tags=["Sweep"])
app.include_router(pending_roasts.router, prefix="/pending-roasts", tags=["Pending Roasts"])
app.include_router(judge.router, prefix="/judge", tags=["Judge"])
app.include_router(track.router, prefix="/track", tags=["Track"])
app.include_router(roasts.router, prefix="/roasts", tags=["Roasts"])
