"""Marvin entry point."""

import logging
import sys

from dotenv import find_dotenv, load_dotenv
from groq import AsyncGroq
from pymongo.database import Database

from .config import Settings
from .db import get_database
from .logging import configure_logger, configure_logging
from .memory import FactStore, ResponseCache
from .processor import MessageProcessor, ProcessorConfig
from .taxonomy import ClassifierConfig, TaxonomyClassifier

logger = logging.getLogger(__name__)


def build_processor(settings: Settings, db: Database) -> MessageProcessor:
    """Wire the classifier, fact store and cache into a processor."""
    store = FactStore(db)
    store.ensure_indexes()
    cache = ResponseCache(db)
    cache.ensure_indexes()

    classifier = TaxonomyClassifier(
        AsyncGroq(api_key=settings.groq_api_key),
        ClassifierConfig(model=settings.groq_model),
    )
    return MessageProcessor(
        classifier,
        store,
        cache,
        config=ProcessorConfig(bot_name=settings.bot_name),
    )


def main() -> None:
    """Main entry point."""
    load_dotenv(find_dotenv(usecwd=True))

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    configure_logger(settings.log_dir)

    if not settings.telegram_token:
        print("❌ Error: TELEGRAM_TOKEN environment variable not set")
        sys.exit(1)

    try:
        db = get_database(settings)
    except RuntimeError as e:
        logger.error(f"{e} ({settings.mongodb_uri})")
        sys.exit(1)

    from .telegram import TelegramBot

    bot = TelegramBot(
        build_processor(settings, db),
        token=settings.telegram_token,
        group_only=settings.group_only,
        reconnect=settings.reconnect,
    )
    bot.run()


if __name__ == "__main__":
    main()
