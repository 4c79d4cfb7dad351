import uvicorn

from cable.config import cable_config
from cable.logger import configure_logging, get_logger

log = get_logger(__name__)


def main() -> None:
    configure_logging("DEBUG" if cable_config.dev_mode else cable_config.log_level)
    log.info(
        f"Starting Cable server on {cable_config.server.host}:{cable_config.server.port}"
        f"{cable_config.server.path} (env={cable_config.env})"
    )
    uvicorn.run(
        "cable.server.server:cable_server",
        host=cable_config.server.host,
        port=cable_config.server.port,
        log_level="warning",
        reload=False,
    )


if __name__ == "__main__":
    main()
