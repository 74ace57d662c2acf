"""
CLI: Odoo -> nodos locales (sync de una sola corrida).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) o a mano tras cambios en Odoo.

Variables de entorno (o .env):
  - ODOO_CONNECTIONS_FILE (JSON con conexiones y mapeos)
  - NODE_STORE_BACKEND (memory | postgres)
  - DATABASE_URL (solo con backend postgres)

Ejecución:
  python scripts/odoo_sync.py
  python scripts/odoo_sync.py --print-config
  python scripts/odoo_sync.py --connections otra_config.json

Código de salida distinto de 0 si la corrida reporta errores.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin instalar el paquete.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from odoo_source.application.dto.sync_dto import SyncReportDTO
from odoo_source.application.use_cases.sync_use_cases import build_sync_use_cases
from odoo_source.core.config import Settings
from odoo_source.core.connections_config import describe_connections, load_connections_file
from odoo_source.core.events import configure_logging
from odoo_source.shared.exceptions.base import AppException


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sincroniza modelos Odoo hacia el store de nodos.")
    parser.add_argument(
        "--connections",
        help="Archivo JSON de conexiones (por defecto ODOO_CONNECTIONS_FILE).",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Solo valida e imprime la configuración (sin credenciales); no contacta Odoo.",
    )
    args = parser.parse_args(argv)

    settings = Settings()
    if args.connections:
        settings = settings.model_copy(update={"ODOO_CONNECTIONS_FILE": args.connections})
    configure_logging(settings)

    try:
        if args.print_config:
            connections = load_connections_file(settings.ODOO_CONNECTIONS_FILE)
            print(json.dumps(describe_connections(connections), indent=2, ensure_ascii=False, default=str))
            return 0

        use_cases = build_sync_use_cases(settings)
        try:
            report = use_cases.run_sync()
        finally:
            use_cases.close()
    except AppException as e:
        logger.error(f"Sync abortado: [{e.error_code}] {e.message} {e.details}")
        return 2

    result = SyncReportDTO.from_report(report)
    print(result.model_dump_json(indent=2))
    if not result.success:
        logger.error(f"Sync con errores: {len(result.errors)}")
        return 1
    logger.info(f"Sync OK: {result.message}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
