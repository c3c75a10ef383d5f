"""The raw-SQL column list must match the orders table reference model."""
from sqlalchemy.dialects.postgresql import JSONB

from src.ps_order.domain.models import ROW_FIELDS
from src.ps_order.infrastructure.db_models import OrderORM


def test_row_fields_match_table_columns() -> None:
    assert set(OrderORM.__table__.columns.keys()) == set(ROW_FIELDS)


def test_files_is_jsonb() -> None:
    assert isinstance(OrderORM.__table__.c.files.type, JSONB)


def test_otp_fits_six_digits() -> None:
    assert OrderORM.__table__.c.otp.type.length == 6
