"""
Скрипт: Инициализация базы данных Staking Pools Ledger
Описание: Создание таблиц staking_pools и user_positions
Автор: Staking Pools Team
"""

import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from db.database import DatabaseManager
from utils.logger import get_logger

logger = get_logger("DatabaseInit")


def init_database(database_url: str = None) -> bool:
    """Инициализация базы данных"""
    db_manager = DatabaseManager(database_url)
    try:
        logger.info("🗄️ Инициализация базы данных...")
        db_manager.initialize_sync()
        logger.info("✅ База данных инициализирована")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Ошибка инициализации БД: {e}")
        return False
    finally:
        db_manager.close()


if __name__ == "__main__":
    success = init_database(sys.argv[1] if len(sys.argv) > 1 else None)
    sys.exit(0 if success else 1)
