# Vercel entrypoint: exposes the ImagePipe FastAPI app.
from imagepipe.api.api_main import app
from imagepipe.api.config import settings
from imagepipe.lib.config import setup_logging, boot_banner

setup_logging()
boot_banner(settings)

__all__ = ["app"]
