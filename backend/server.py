from fastapi import FastAPI, APIRouter, Depends
from starlette.middleware.cors import CORSMiddleware
import logging

from rigshop import __version__
from rigshop.config import get_cors_origins
from rigshop.database import get_db, ensure_indexes, close_client
from rigshop.identity import require_user_id
from rigshop.models import SeedRequest
from rigshop.routes_modules import all_routers, init_all_routers
from rigshop.seed import seed_catalog

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(db) -> FastAPI:
    app = FastAPI(title="RigShop API", version=__version__)
    api_router = APIRouter(prefix="/api")

    init_all_routers(db)
    for router in all_routers:
        api_router.include_router(router)

    @api_router.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @api_router.post("/seed")
    async def seed(req: SeedRequest, user_id: str = Depends(require_user_id)):
        logger.info(f"Catalog seed requested by user {user_id} (force={req.force})")
        return seed_catalog(db, force=req.force)

    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=get_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_indexes():
        ensure_indexes(db)

    return app


app = create_app(get_db())


@app.on_event("shutdown")
async def shutdown_db_client():
    close_client()


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8001)))
