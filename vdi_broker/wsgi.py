"""
WSGI entry point: ``gunicorn --threads 8 vdi_broker.wsgi:app``.

Run a single worker process; all broker state lives in that process.
"""

import os

from vdi_broker.app import create_app
from vdi_broker.config.loader import BrokerConfig
from vdi_broker.observability import setup_json_logging

setup_json_logging(level=os.environ.get("LOG_LEVEL", BrokerConfig.settings().logging.level))

app = create_app()
