import logging

import uvicorn
from dotenv import load_dotenv

from api import create_app
from config import load_settings

# Load environment variables from .env
load_dotenv()

settings = load_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Shared OpenAI client and database engine are built once here
app = create_app(settings)


if __name__ == "__main__":
    logging.getLogger(__name__).info("Server is running on port %s", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
