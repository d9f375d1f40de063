import json
import logging
import unittest

from asset_ledger.core.logging import JsonFormatter, LedgerContextFilter


def _record(**extra):
    fields = {
        "name": "asset_ledger.services.asset_service",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": "Asset %s created",
        "args": (7,),
    }
    fields.update(extra)
    return logging.makeLogRecord(fields)


class JsonFormatterTest(unittest.TestCase):
    def setUp(self):
        self.formatter = JsonFormatter("Asset Ledger", "test")

    def test_carries_ledger_context(self):
        payload = json.loads(
            self.formatter.format(_record(operation="Create asset", asset_id=7))
        )
        self.assertEqual(payload["message"], "Asset 7 created")
        self.assertEqual(payload["app"], "Asset Ledger")
        self.assertEqual(payload["environment"], "test")
        self.assertEqual(payload["operation"], "Create asset")
        self.assertEqual(payload["asset_id"], 7)
        self.assertNotIn("entry_id", payload)

    def test_placeholder_operation_is_omitted(self):
        record = _record()
        LedgerContextFilter().filter(record)
        payload = json.loads(self.formatter.format(record))
        self.assertNotIn("operation", payload)


class LedgerContextFilterTest(unittest.TestCase):
    def test_fills_missing_operation(self):
        record = _record()
        self.assertTrue(LedgerContextFilter().filter(record))
        self.assertEqual(record.operation, "-")

    def test_keeps_existing_operation(self):
        record = _record(operation="Issue stock")
        LedgerContextFilter().filter(record)
        self.assertEqual(record.operation, "Issue stock")

    def test_plain_format_accepts_records_without_context(self):
        formatter = logging.Formatter("%(levelname)s [%(operation)s] - %(message)s")
        record = _record()
        LedgerContextFilter().filter(record)
        self.assertEqual(formatter.format(record), "INFO [-] - Asset 7 created")


if __name__ == "__main__":
    unittest.main()
