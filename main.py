#!/usr/bin/env python3
"""
TVDB Provider Main Entry Point

Loads the configuration and serves the provider API with uvicorn.

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

import argparse
import os

import uvicorn

from tvdb_provider.config_models import DEFAULT_CONFIG_PATH, ConfigurationValidator
from tvdb_provider.utils import setup_logging


def main():
    parser = argparse.ArgumentParser(description="TheTVDB metadata provider")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to JSON or YAML configuration")
    args = parser.parse_args()
    # Read again by the app lifespan inside uvicorn
    os.environ["CONFIG_PATH"] = args.config

    config = ConfigurationValidator().load_and_validate_config(args.config)
    logger = setup_logging(log_level=config.server.log_level, log_dir=config.server.log_dir)
    logger.info(f"Starting TVDB Provider on {config.server.host}:{config.server.port}...")

    uvicorn.run(
        "tvdb_provider.web_api:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
        access_log=False  # We have our own logging
    )


if __name__ == "__main__":
    main()
