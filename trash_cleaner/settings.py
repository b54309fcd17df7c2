"""
Settings - Environment driven configuration and logging setup
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from dotenv import load_dotenv

from trash_cleaner.client import EmailService
from trash_cleaner.errors import ConfigError


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

DEFAULT_CONFIG_DIR = 'config'


class RunMode(str, Enum):
    """How the cleaner was started"""
    CLI = 'cli'  # interactive terminal
    HOSTED = 'hosted'  # serverless function or web service


@dataclass
class Settings:
    """Runtime settings, read from the environment (and .env)"""
    config_dir: str = DEFAULT_CONFIG_DIR
    service: EmailService = EmailService.GMAIL
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        if environ is None:
            load_dotenv()
            environ = os.environ

        service = environ.get('TRASH_CLEANER_SERVICE', EmailService.GMAIL.value).lower()
        if service not in {s.value for s in EmailService}:
            raise ConfigError(f"Unknown email service '{service}' in TRASH_CLEANER_SERVICE")

        return cls(
            config_dir=environ.get('TRASH_CLEANER_CONFIG_DIR', DEFAULT_CONFIG_DIR),
            service=EmailService(service),
            log_level=environ.get('LOG_LEVEL', 'INFO').upper()
        )


def detect_run_mode(environ: Optional[Mapping[str, str]] = None) -> RunMode:
    """Hosted when running inside Google Cloud Functions / Cloud Run"""
    environ = os.environ if environ is None else environ
    if environ.get('GCP_PROJECT') or environ.get('K_SERVICE'):
        return RunMode.HOSTED
    return RunMode.CLI


def configure_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )
