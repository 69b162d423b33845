import uvicorn

from app import create_app
from config import get_settings
from logging_setup import setup_logging

settings = get_settings()
setup_logging(settings.log_level)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
