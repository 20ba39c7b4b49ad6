"""
Normalize stored contract price periods.

Re-fits every contract's stored price periods to its current validity
window: months outside the window are dropped, flexibility bounds are
recomputed from the contract percentages, empty months are removed and
legacy payload shapes are rewritten in the current format.

Usage:
    python scripts/normalize_price_periods.py              # All active contracts
    python scripts/normalize_price_periods.py --all        # Include inactive contracts
    python scripts/normalize_price_periods.py --dry-run    # Report only
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config import Config
from src.db.postgres import get_session
from src.engine.index_adjustment import IndexTable
from src.engine.pricing_editor import PricingEditor
from src.models.contract import EnergyContract

logger = logging.getLogger(__name__)


def normalize_contract(contract: EnergyContract) -> bool:
    """Normalize one contract's price periods. Returns True if they changed."""
    editor = PricingEditor.for_contract(
        contract.start_month,
        contract.end_month,
        persisted=contract.get_price_periods(),
        flexibility=contract.flexibility,
        index_table=IndexTable(),
    )
    normalized = editor.serialize().to_dict()
    if normalized == contract.price_periods:
        return False
    contract.price_periods = normalized
    return True


def normalize_all(include_inactive: bool = False, dry_run: bool = False) -> dict:
    stats = {"contracts": 0, "changed": 0}

    with get_session() as session:
        query = session.query(EnergyContract)
        if not include_inactive:
            query = query.filter(EnergyContract.is_active == True)

        for contract in query.all():
            stats["contracts"] += 1
            if normalize_contract(contract):
                stats["changed"] += 1
                logger.info(f"Normalized price periods for {contract.code}")

        if dry_run:
            session.rollback()
        else:
            session.commit()

    return stats


def main():
    parser = argparse.ArgumentParser(description="Normalize stored contract price periods")
    parser.add_argument("--all", action="store_true", help="Include inactive contracts")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without saving")
    args = parser.parse_args()

    logging.basicConfig(level=Config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    stats = normalize_all(include_inactive=args.all, dry_run=args.dry_run)

    print(f"Contracts checked: {stats['contracts']}")
    print(f"Contracts {'to update' if args.dry_run else 'updated'}: {stats['changed']}")


if __name__ == "__main__":
    main()
