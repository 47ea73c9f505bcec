"""Run the API server: ``python -m paper_assistant``."""

import uvicorn

from .config import load_config


def main():
    cfg = load_config()

    uvicorn.run(
        "paper_assistant.api:app",
        host=cfg.api.host,
        port=cfg.api.port,
    )


if __name__ == "__main__":
    main()
