from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .error_utils import install_exception_handlers
from .common.middleware import install_error_middleware
from .healthz_endpoint import router as healthz_router
from .image_routes import router as image_router

log = logging.getLogger(__name__)

app = FastAPI(
    title="ImagePipe",
    description="Image compression and fetch-and-embed pipeline for document generation",
    version="1.0.0"
)

# JSON-only errors and request ids on every response
install_error_middleware(app)
install_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Authorization", "Content-Type", "Accept", "Origin",
        "User-Agent", "Cache-Control", "Pragma"
    ],
    max_age=86400,
)

app.include_router(healthz_router)
app.include_router(image_router)


@app.get("/api/version")
async def get_version():
    """Version endpoint"""
    return {"version": app.version}


if __name__ == "__main__":
    import uvicorn
    from imagepipe.lib.config import setup_logging, boot_banner
    setup_logging()
    boot_banner(settings)
    uvicorn.run(app, host="0.0.0.0", port=8000)
