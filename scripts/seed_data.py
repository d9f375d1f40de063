import argparse
from datetime import date, timedelta

from sqlalchemy import delete, select

from asset_ledger.core.logging import setup_logging
from asset_ledger.database import Base, SessionLocal, engine, ensure_sqlite_schema
from asset_ledger.models import (
    Asset,
    AssetBrand,
    AssetDocument,
    AssetHistory,
    AssetImage,
    AssetType,
    StockEntry,
    StockIssue,
    User,
    import_all_models,
)
from asset_ledger.schemas.asset import AssetInput
from asset_ledger.schemas.stock import StockEntryInput
from asset_ledger.services import asset_service, stock_service
from asset_ledger.storage import get_blob_store


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample assets and stock entries.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()
    blobs = get_blob_store()

    db = SessionLocal()
    try:
        if args.reset:
            for model in (
                StockIssue,
                StockEntry,
                AssetImage,
                AssetDocument,
                AssetHistory,
                Asset,
                AssetType,
                AssetBrand,
                User,
            ):
                db.execute(delete(model))
            db.commit()

        has_asset = db.execute(select(Asset.id).limit(1)).first()
        if has_asset:
            print("Seed skipped: assets already exist.")
            return

        assets = [
            AssetInput(
                type_name="Laptop",
                brand_name="Dell",
                model_name="Latitude 5420",
                status="InStock",
                serial_number="DL5420-0001",
            ),
            AssetInput(
                type_name="GPS Tracker",
                brand_name="Teltonika",
                model_name="FMB920",
                status="Issued",
                vehicle_number="KA01AB1234",
                imei_number="356307042441013",
                issued_to="Ravi Kumar",
                issue_date=date.today() - timedelta(days=30),
            ),
            AssetInput(
                type_name="Router",
                brand_name="Cisco",
                model_name="RV340",
                status="Received",
                ip_address="10.0.0.1",
                received_from="Head Office",
                device_status="Faulty",
                device_remark="Port 2 not working",
            ),
        ]
        for data in assets:
            asset_service.create_asset(db, data, blobs=blobs)

        bolts = stock_service.create_entry(
            db,
            StockEntryInput(
                product_name="Bolts",
                category="Hardware",
                supplier="Fastener Supply Co",
                quantity=100,
                unit="Pieces",
                purchase_price=2.5,
                selling_price=4,
                warehouse="Main",
                rack_number="A-1",
            ),
            blobs=blobs,
        )
        stock_service.create_entry(
            db,
            StockEntryInput(
                product_name="SIM Card",
                category="Telecom",
                supplier="Carrier Ltd",
                quantity=50,
                unit="Pieces",
                purchase_price=1,
                warehouse="Main",
                expiry_date=date.today() + timedelta(days=365),
            ),
            blobs=blobs,
        )
        stock_service.issue(db, bolts["id"], 40, issued_to="Workshop")
        print("Seed data created.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
