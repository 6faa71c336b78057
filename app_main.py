"""Application entry point for the Daily Challenge service."""

from __future__ import annotations

from challenge_app.core.challenge_manager import ChallengeManager
from challenge_app.core.day_template_importer import load_day_templates_from_file
from challenge_app.server.api_server import run_api_server
from challenge_app.utils.config import get_app_config
from challenge_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and settings, then serve the API."""
    config = get_app_config()
    logger = configure_logging(config.log_level)
    logger.info("Starting Daily Challenge service…")

    templates = []
    if config.day_templates_path is not None:
        imported = load_day_templates_from_file(config.day_templates_path)
        templates = imported.templates
        logger.info(
            "Loaded %d day templates from %s for new groups",
            len(templates),
            imported.source_path,
        )

    manager = ChallengeManager(default_templates=templates)
    logger.info("API listening on http://%s:%s/", config.host, config.port)
    run_api_server(manager, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
