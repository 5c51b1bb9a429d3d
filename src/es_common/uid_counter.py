"""Platform UID generation backed by the uid_counters table.

Format: CC-RR-YY-SSSS
  CC   country calling code (2+ digits, 00 if unknown)
  RR   macro-region code
  YY   last two digits of the year
  SSSS per (region, year) sequence

The increment is a single UPDATE ... RETURNING on a row that the same
transaction just ensured exists, so the row lock is held until the caller
commits the user row that consumes the value.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.datetime_utils import utc_now
from src.es_common.errors import InternalError

DEFAULT_REGION = "01"

REGION_BY_COUNTRY: dict[str, str] = {
    "India": "01", "China": "01", "Japan": "01", "Korea": "01",
    "UAE": "02", "Saudi Arabia": "02",
    "UK": "03", "Germany": "03", "France": "03",
    "USA": "04", "Canada": "04",
    "Brazil": "05", "Argentina": "05",
    "South Africa": "06", "Nigeria": "06",
    "Australia": "07", "New Zealand": "07",
}

CALLING_CODE_BY_COUNTRY: dict[str, int] = {
    "India": 91, "USA": 1, "Canada": 1, "UK": 44, "Japan": 81, "China": 86,
    "Germany": 49, "France": 33, "Brazil": 55, "South Africa": 27,
    "Australia": 61, "UAE": 971,
}

_ENSURE_COUNTER_SQL = text("""
    INSERT INTO uid_counters (region_code, year, last_value)
    VALUES (:region_code, :year, 0)
    ON CONFLICT (region_code, year) DO NOTHING
""")

_INCREMENT_COUNTER_SQL = text("""
    UPDATE uid_counters
    SET last_value = last_value + 1
    WHERE region_code = :region_code AND year = :year
    RETURNING last_value
""")


def region_for_country(country: str | None) -> str:
    if country is None:
        return DEFAULT_REGION
    return REGION_BY_COUNTRY.get(country, DEFAULT_REGION)


def format_platform_uid(country: str | None, region_code: str, year: int, seq: int) -> str:
    calling_code = CALLING_CODE_BY_COUNTRY.get(country or "", 0)
    return f"{calling_code:02d}-{region_code}-{year % 100:02d}-{seq:04d}"


async def next_platform_uid(db: AsyncSession, country: str | None) -> str:
    """Allocate the next platform UID. Must run inside the caller's transaction."""
    region_code = region_for_country(country)
    year = utc_now().year % 100
    params = {"region_code": region_code, "year": year}
    await db.execute(_ENSURE_COUNTER_SQL, params)
    row = (await db.execute(_INCREMENT_COUNTER_SQL, params)).fetchone()
    if row is None:
        raise InternalError("uid_counters increment returned no rows")
    return format_platform_uid(country, region_code, year, row.last_value)
