#!/usr/bin/env python3
"""
Telegram chat archive to channel migration tool
"""

__version__ = "0.1.0"

from tg_undelete.core.config import load_config
from tg_undelete.core.engine import MigrationEngine, open_engine
from tg_undelete.core.ledger import MigrationLedger
from tg_undelete.services.archive import MessageReader
from tg_undelete.services.publisher import PublisherAdapter
