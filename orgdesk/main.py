from fastapi import FastAPI

from orgdesk.logging_config import logger
from orgdesk.routes.admin import router as admin_router
from orgdesk.routes.health import router as health_router
from orgdesk.routes.orgs import router as orgs_router
from orgdesk.routes.permissions import router as permissions_router
from orgdesk.routes.tasks import router as tasks_router

def create_app() -> FastAPI:
    app = FastAPI(title="orgdesk-api", version="0.1.0")
    app.include_router(health_router)
    app.include_router(orgs_router)
    app.include_router(permissions_router)
    app.include_router(tasks_router)
    app.include_router(admin_router)
    logger.debug("app created")
    return app

app = create_app()
