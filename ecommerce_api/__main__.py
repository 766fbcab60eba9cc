import uvicorn

from ecommerce_api.core import config


def main() -> None:
    uvicorn.run(
        "ecommerce_api.main:app",
        host=config.server_host(),
        port=config.server_port(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
