"""
ecoreward.__main__ — Entry point for ``python -m ecoreward``
=============================================================

Commands::

    python -m ecoreward init-db      # create tables (dev; prod uses Alembic)
    python -m ecoreward reconcile    # repair balances from the ledger
    python -m ecoreward serve        # run the API with uvicorn
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from ecoreward.config import load_config
from ecoreward.database.engine import create_db_engine, init_db
from ecoreward.services.reconciliation_service import reconcile_balances

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("ecoreward")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(prog="ecoreward")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("command", choices=["init-db", "reconcile", "serve"])
    args = parser.parse_args(argv)

    if args.command == "serve":
        import uvicorn

        cfg = load_config(args.config)
        logger.info("Starting %s API on port %d", cfg.community_name, cfg.api_port)
        uvicorn.run("ecoreward.api.main:app", host="0.0.0.0", port=cfg.api_port)
        return 0

    engine = create_db_engine()
    if args.command == "init-db":
        init_db(engine)
        return 0

    report = reconcile_balances(engine)
    return 1 if report["corrected"] else 0


if __name__ == "__main__":
    sys.exit(main())
