import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # uvicorn already logs access lines; ours carry timing and client ip
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
