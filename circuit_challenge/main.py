import logging

from fastapi import FastAPI

from circuit_challenge import models  # registers the tables on Base
from circuit_challenge.core.config import settings
from circuit_challenge.core.database import Base, engine
from circuit_challenge.routers import game_routers
from circuit_challenge.services import SessionRegistry
from utils.logger_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# create FastAPI
app = FastAPI(title="Circuit Challenge API", version="1.0")

# running games live in memory, finished ones in the database
app.state.registry = SessionRegistry()

# get routers
app.include_router(game_routers.router, prefix="/games", tags=["Games"])

logger.info("Circuit Challenge API ready, results stored in %s", settings.DATABASE_URL)


# Landing page
@app.get("/")
async def index():
    return {"name": app.title, "version": app.version, "games": "/games"}
