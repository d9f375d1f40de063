from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)

from asset_ledger.database.base import Base
from asset_ledger.models._time import utcnow


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True)
    type_id = Column(Integer, ForeignKey("asset_types.id"), nullable=False)
    brand_id = Column(Integer, ForeignKey("asset_brands.id"), nullable=False)
    model_name = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="InStock")

    vehicle_number = Column(String(60), nullable=False, default="")
    serial_number = Column(String(120), nullable=False, default="")
    imei_number = Column(String(120), nullable=False, default="")
    ip_address = Column(String(60), nullable=False, default="")
    gid = Column(String(120), nullable=False, default="")

    issued_to = Column(String(200), nullable=False, default="")
    received_from = Column(String(200), nullable=False, default="")
    issue_date = Column(Date)
    received_date = Column(Date)

    device_status = Column(String(40), nullable=False, default="Good")
    device_remark = Column(Text, nullable=False, default="")
    recovery_name = Column(String(200), nullable=False, default="")
    recovery_status = Column(String(40), nullable=False, default="Pending")

    prepared_by = Column(Integer, ForeignKey("users.id"))
    approved_by = Column(Integer, ForeignKey("users.id"))

    mail_date = Column(Date)
    replace_device_sn_imei = Column(String(120), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_assets_status", "status"),
        Index("idx_assets_device_status", "device_status"),
        Index("idx_assets_created_at", "created_at"),
    )


class AssetImage(Base):
    __tablename__ = "asset_images"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False)
    image_data = Column(LargeBinary)
    storage_key = Column(String(200))
    image_name = Column(String(255), nullable=False)
    image_size = Column(Integer, nullable=False)
    mime_type = Column(String(120), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_asset_images_asset", "asset_id"),
    )


class AssetDocument(Base):
    __tablename__ = "asset_documents"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False)
    document_data = Column(LargeBinary)
    storage_key = Column(String(200))
    document_name = Column(String(255), nullable=False)
    document_type = Column(String(10), nullable=False, default="other")
    file_size = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_asset_documents_asset", "asset_id"),
    )


__all__ = ["Asset", "AssetDocument", "AssetImage"]
