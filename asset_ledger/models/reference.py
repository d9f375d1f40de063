from sqlalchemy import Column, DateTime, Integer, String

from asset_ledger.database.base import Base
from asset_ledger.models._time import utcnow


class AssetType(Base):
    __tablename__ = "asset_types"

    id = Column(Integer, primary_key=True)
    type_name = Column(String(120), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class AssetBrand(Base):
    __tablename__ = "asset_brands"

    id = Column(Integer, primary_key=True)
    brand_name = Column(String(120), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(120), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200))
    role = Column(String(40), nullable=False, default="staff")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


__all__ = ["AssetBrand", "AssetType", "User"]
