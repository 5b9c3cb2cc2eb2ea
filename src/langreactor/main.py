import uvicorn

from .api import create_app
from .logging import setup_logging
from .settings import load_settings

settings = load_settings()
log = setup_logging(settings.log_level)
app = create_app(settings)


def run() -> None:
    log.info("server_starting", host=settings.host, port=settings.port,
             max_concurrent=settings.max_concurrent)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
