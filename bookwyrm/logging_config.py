import logging

from bookwyrm.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # uvicorn already logs every request line; ours carries the timing
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
