"""
Staking Pools Ledger - Database Connection
Модуль для подключения к базе данных и управления сессиями.

Автор: Staking Pools Team
Версия: 1.0.0
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, Engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from utils.logger import get_logger
from config.settings import get_settings
from db.models import Base

logger = get_logger("Database")


class DatabaseManager:
    """
    Менеджер базы данных для Staking Pools Ledger.

    Функциональность:
    - Создание движка для SQLite и PostgreSQL
    - Автоматическое создание таблиц
    - Сессии с commit/rollback через контекстный менеджер
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Инициализация DatabaseManager.

        Args:
            database_url: URL базы данных (если не указан, берется из настроек)
        """
        self.settings = get_settings()
        self.database_url = database_url or self.settings.database_url

        self.sync_engine: Optional[Engine] = None
        self.sync_session_factory: Optional[sessionmaker] = None
        self.is_initialized = False

        logger.info(f"📊 DatabaseManager инициализирован для: {self._mask_db_url()}")

    def _mask_db_url(self) -> str:
        """Маскирование URL БД для логов."""
        if not self.database_url:
            return "None"

        # Скрываем пароль в URL
        if '@' in self.database_url:
            parts = self.database_url.split('@')
            if len(parts) >= 2:
                return f"{parts[0].split('://')[0]}://***@{parts[1]}"

        return self.database_url[:50] + "..." if len(self.database_url) > 50 else self.database_url

    def initialize_sync(self) -> None:
        """
        Инициализация синхронного подключения к БД.

        Raises:
            SQLAlchemyError: если движок не создан или БД недоступна
        """
        logger.info("🔧 Инициализация подключения к БД...")

        if self.database_url.startswith('sqlite'):
            # Один StaticPool: in-memory БД живет, пока жив движок
            self.sync_engine = create_engine(
                self.database_url,
                poolclass=StaticPool,
                connect_args={
                    'check_same_thread': False,
                    'timeout': 30
                },
                echo=self.settings.debug_sql
            )
        else:
            self.sync_engine = create_engine(
                self.database_url,
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,
                pool_recycle=3600,
                echo=self.settings.debug_sql
            )

        self.sync_session_factory = sessionmaker(
            bind=self.sync_engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )

        self._create_tables()
        self._test_sync_connection()

        self.is_initialized = True
        logger.info("✅ Подключение к БД успешно инициализировано")

    def _create_tables(self) -> None:
        """Создание всех таблиц в БД."""
        try:
            Base.metadata.create_all(bind=self.sync_engine)
            logger.info("✅ Таблицы БД созданы или уже существуют")
        except Exception as e:
            logger.error(f"❌ Ошибка создания таблиц: {e}")
            raise

    def _test_sync_connection(self) -> None:
        """Тестирование подключения."""
        with self.sync_session_factory() as session:
            session.execute(text('SELECT 1'))
        logger.info("✅ Тестовое подключение к БД успешно")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Получение сессии БД с контекстным менеджером.

        Yields:
            Session: Сессия SQLAlchemy
        """
        if not self.is_initialized or not self.sync_session_factory:
            raise RuntimeError("БД не инициализирована")

        session = self.sync_session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Закрытие соединений."""
        if self.sync_engine:
            self.sync_engine.dispose()
            self.sync_engine = None

        self.sync_session_factory = None
        self.is_initialized = False
        logger.info("🔒 Соединения с БД закрыты")


# Глобальный экземпляр менеджера БД
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """
    Получение глобального экземпляра менеджера БД.

    Returns:
        DatabaseManager: Экземпляр менеджера БД
    """
    global _db_manager

    if _db_manager is None:
        _db_manager = DatabaseManager()

    return _db_manager


def initialize_database(database_url: Optional[str] = None) -> DatabaseManager:
    """
    Инициализация глобального подключения к БД.

    Args:
        database_url: URL базы данных

    Returns:
        DatabaseManager: Инициализированный менеджер
    """
    db_manager = get_database_manager()

    if database_url:
        db_manager.database_url = database_url

    db_manager.initialize_sync()
    return db_manager


__all__ = [
    'DatabaseManager',
    'get_database_manager',
    'initialize_database'
]
