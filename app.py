"""Application entry point for the Ustaz-AI teacher assistant."""

from __future__ import annotations

from typing import Optional

from config.settings import load_config
from modules.services.session import Session
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and launch the Gradio interface."""
    config = load_config(config_path)
    logger = setup_logging(config)
    session = Session(config).init()
    logger.info("Backends available: %s", ", ".join(session.client.available_backends()) or "none")
    try:
        app = build_app(config, session=session)
        app.queue()
        app.launch(share=False, inbrowser=False)
    finally:
        session.dispose()


if __name__ == "__main__":
    main()
