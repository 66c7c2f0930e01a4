"""
Staking Pools Ledger - Export Positions Script

Экспорт сохраненного состояния для отчетности:
- сводка по пулам
- позиции вкладчиков с невыплаченной наградой на момент экспорта
- форматы JSON и CSV

Автор: Staking Pools Team
Версия: 1.0.0
"""

import argparse
import csv
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

sys.path.append(str(Path(__file__).parent.parent))

from core.accounting_engine import compute_payout
from core.clock import Clock, SystemClock
from core.pool_registry import PoolRegistry
from core.user_ledger import UserLedger
from db.database import DatabaseManager
from db.ledger_repository import LedgerRepository
from utils.logger import get_logger

logger = get_logger("Export")


class PositionExporter:
    """Экспортер пулов и позиций"""

    def __init__(self, registry: PoolRegistry, ledger: UserLedger,
                 export_dir: str = "exports", clock: Optional[Clock] = None):
        self.registry = registry
        self.ledger = ledger
        self.clock = clock or SystemClock()
        self.export_dir = export_dir
        os.makedirs(self.export_dir, exist_ok=True)

    def pool_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for pool_id, pool in enumerate(self.registry.pools()):
            row = {"pool_id": pool_id}
            row.update(pool.to_dict())
            rows.append(row)
        return rows

    def position_rows(self) -> List[Dict[str, Any]]:
        now = self.clock.now()
        rows = []
        for (pool_id, depositor), position in sorted(self.ledger.items(), key=lambda item: item[0]):
            pool = self.registry.get_pool(pool_id)
            row = {"pool_id": pool_id, "depositor": depositor}
            row.update(position.to_dict())
            row["pending_reward"] = compute_payout(pool, position, now)
            row["unlock_time"] = position.last_deposit_time + pool.lock_period
            rows.append(row)
        return rows

    def export(self, output_format: str = "json") -> List[str]:
        """Записать файлы pools_* и positions_*; возвращает пути"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        written = []
        for name, rows in (("pools", self.pool_rows()), ("positions", self.position_rows())):
            filepath = os.path.join(self.export_dir, f"{name}_{timestamp}.{output_format}")
            if output_format == "json":
                with open(filepath, "w", encoding="utf-8") as f:
                    # Суммы могут не влезть в double у потребителя: пишем строками
                    json.dump([{k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
                                for k, v in row.items()} for row in rows],
                              f, ensure_ascii=False, indent=2)
            elif output_format == "csv":
                with open(filepath, "w", encoding="utf-8", newline="") as f:
                    if rows:
                        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
                        writer.writeheader()
                        writer.writerows(rows)
            else:
                raise ValueError(f"Unsupported format: {output_format}")
            logger.info(f"📄 Экспорт {name}: {len(rows)} строк -> {filepath}")
            written.append(filepath)
        return written


def main():
    """Главная функция скрипта"""
    parser = argparse.ArgumentParser(description="Экспорт пулов и позиций Staking Pools Ledger")
    parser.add_argument("--format", choices=["json", "csv"], default="json", help="Формат экспорта")
    parser.add_argument("--database-url", default=None, help="URL базы данных")
    parser.add_argument("--export-dir", default="exports", help="Каталог для файлов")
    args = parser.parse_args()

    db_manager = DatabaseManager(args.database_url)
    try:
        db_manager.initialize_sync()
        registry, ledger = LedgerRepository(db_manager).load()
        exported_files = PositionExporter(registry, ledger, args.export_dir).export(args.format)
    finally:
        db_manager.close()

    print("\nЭкспорт завершен! Созданы файлы:")
    for file_path in exported_files:
        print(f"  - {file_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
