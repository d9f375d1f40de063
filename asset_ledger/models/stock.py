from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)

from asset_ledger.database.base import Base
from asset_ledger.models._time import utcnow


class StockEntry(Base):
    __tablename__ = "stock_entries"

    id = Column(Integer, primary_key=True)
    entry_date = Column(Date, nullable=False)
    product_name = Column(String(200), nullable=False)
    category = Column(String(120), nullable=False)
    supplier = Column(String(200), nullable=False)

    quantity = Column(Float, nullable=False)
    unit = Column(String(40), nullable=False)
    purchase_price = Column(Float, nullable=False, default=0)
    selling_price = Column(Float, nullable=False, default=0)

    expiry_date = Column(Date)
    batch_number = Column(String(120))
    warehouse = Column(String(120), nullable=False)
    rack_number = Column(String(60))
    description = Column(Text)

    prepared_by = Column(Integer, ForeignKey("users.id"))
    approved_by = Column(Integer, ForeignKey("users.id"))

    bill_filename = Column(String(255))
    bill_pdf = Column(LargeBinary)
    bill_storage_key = Column(String(200))
    bill_filesize = Column(Integer)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_stock_entries_category", "category"),
        Index("idx_stock_entries_warehouse", "warehouse"),
        Index("idx_stock_entries_entry_date", "entry_date"),
    )


class StockIssue(Base):
    __tablename__ = "stock_issues"

    id = Column(Integer, primary_key=True)
    stock_entry_id = Column(Integer, ForeignKey("stock_entries.id"), nullable=False)
    quantity = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="issued")
    issued_to = Column(String(200))
    issued_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_stock_issues_entry_status", "stock_entry_id", "status"),
    )


__all__ = ["StockEntry", "StockIssue"]
