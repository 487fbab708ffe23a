import logging

import uvicorn

from .config import CONFIG

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    uvicorn.run("linkrank.api:app", host=CONFIG.api_host, port=CONFIG.api_port, reload=False)
