"""Data access layer for cycle overrides"""

from typing import Dict, Optional
from sqlalchemy.orm import Session
from cycles_gateway.infrastructure.database.models import CycleOverrideRecord
from cycles_gateway.domain.models import CycleOverride


class OverrideRepository:
    """Repository for per-cycle overrides"""

    def __init__(self, db: Session):
        self.db = db

    def list_overrides(self, obligation_id: str) -> Dict[int, CycleOverride]:
        """All overrides for an obligation keyed by cycle number"""
        rows = (
            self.db.query(CycleOverrideRecord)
            .filter(CycleOverrideRecord.obligation_id == obligation_id)
            .order_by(CycleOverrideRecord.cycle_number)
            .all()
        )
        return {row.cycle_number: _to_domain(row) for row in rows}

    def get_override(self, obligation_id: str, cycle_number: int) -> Optional[CycleOverrideRecord]:
        return (
            self.db.query(CycleOverrideRecord)
            .filter(
                CycleOverrideRecord.obligation_id == obligation_id,
                CycleOverrideRecord.cycle_number == cycle_number,
            )
            .first()
        )

    def upsert_override(self, obligation_id: str, override: CycleOverride) -> CycleOverrideRecord:
        """Insert or replace the override for (obligation, cycle); expects a validated override"""
        row = self.get_override(obligation_id, override.cycle_number)
        if row is None:
            row = CycleOverrideRecord(obligation_id=obligation_id, cycle_number=override.cycle_number)
            self.db.add(row)

        row.expected_amount = override.expected_amount
        row.expected_date = override.expected_date
        row.minimum_amount = override.minimum_amount
        row.notes = override.notes
        self.db.flush()
        return row

    def delete_override(self, obligation_id: str, cycle_number: int) -> bool:
        """Returns False when nothing was stored for that cycle"""
        row = self.get_override(obligation_id, cycle_number)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True


def _to_domain(row: CycleOverrideRecord) -> CycleOverride:
    return CycleOverride(
        cycle_number=row.cycle_number,
        expected_amount=row.expected_amount,
        expected_date=row.expected_date,
        minimum_amount=row.minimum_amount,
        notes=row.notes,
    )
