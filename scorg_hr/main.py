from fastapi import FastAPI

from scorg_hr.api.routes import health
from scorg_hr.core import config
from scorg_hr.core.errors import register_exception_handlers
from scorg_hr.core.logging_config import setup_logging


# ============================================
# ✅ APP INIT
# ============================================

setup_logging(config.LOG_LEVEL)

app = FastAPI(title="SC Org HR")

register_exception_handlers(app)


# ============================================
# ✅ REGISTER ROUTERS
# ============================================

app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "SC Org HR API running"}
