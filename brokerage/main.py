from fastapi import FastAPI

import brokerage.models  # noqa: F401  register tables on Base.metadata
from brokerage.api.router import api_router
from brokerage.core.config import settings
from brokerage.core.error_handlers import register_error_handlers
from brokerage.core.logging import configure_logging
from brokerage.db.base import Base
from brokerage.db.session import engine

app = FastAPI(title="Brokerage Back Office")
app.include_router(api_router, prefix="/api")
register_error_handlers(app)


@app.on_event("startup")
def startup():
    configure_logging(settings.log_level)
    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)
