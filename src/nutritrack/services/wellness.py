"""Water and sleep helpers."""

from collections.abc import Iterable

from nutritrack.domain.wellness import SleepRecord, WaterIntakeRecord

ML_PER_OZ = 29.5735


def to_ml(record: WaterIntakeRecord) -> float:
    """Return the record's amount in millilitres."""
    if record.unit == "oz":
        return record.amount * ML_PER_OZ
    return record.amount


def water_total_ml(records: Iterable[WaterIntakeRecord], day: str) -> float:
    """Return total water in millilitres for a YYYY-MM-DD date."""
    return sum(to_ml(record) for record in records if record.date == day)


def sleep_record_on(records: Iterable[SleepRecord], day: str) -> SleepRecord | None:
    """Return the sleep record for a date, if any."""
    for record in records:
        if record.date == day:
            return record
    return None


def sleep_hours_on(records: Iterable[SleepRecord], day: str) -> float | None:
    """Return hours slept for a date, if recorded."""
    record = sleep_record_on(records, day)
    return record.duration_hours if record else None
