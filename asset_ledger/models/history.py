from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text

from asset_ledger.database.base import Base
from asset_ledger.models._time import utcnow


class AssetHistory(Base):
    __tablename__ = "asset_history"

    id = Column(Integer, primary_key=True)
    # Plain column, no foreign key: DELETE entries must survive the asset row.
    asset_id = Column(Integer, nullable=False)
    action_type = Column(String(10), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"))
    old_values = Column(JSON)
    new_values = Column(JSON)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_asset_history_asset", "asset_id", "created_at"),
    )


__all__ = ["AssetHistory"]
