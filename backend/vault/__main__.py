"""`python -m vault` - run the service under uvicorn."""
import logging

import uvicorn

from vault.config import settings


def main():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("vault.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
