import logging

import uvicorn

from gateway import config


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "LLM gateway (prompt-size router & metrics) starting on http://%s:%d", config.HOST, config.PORT
    )
    uvicorn.run("gateway.app:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
