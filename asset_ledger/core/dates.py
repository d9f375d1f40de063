from datetime import date, datetime


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        # Accept timestamps sent by date pickers ("2024-01-15T00:00:00.000Z").
        value_text = value_text[:10]
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            return None
    return None


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
