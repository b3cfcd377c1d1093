"""Table definitions for the spot / weather-variable database.

Column names follow the production Postgres schema, which is in Spanish.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

spot_table = Table(
    "spot",
    metadata,
    Column("id_spot", Integer, primary_key=True),
    Column("nombre", String(120), nullable=False),
    Column("coord_lat", Float, nullable=False),
    Column("coord_lng", Float, nullable=False),
)

deporte_table = Table(
    "deporte",
    metadata,
    Column("id_deporte", Integer, primary_key=True),
    Column("nombre", String(40), nullable=False),
)

deporte_spot_table = Table(
    "deporte_spot",
    metadata,
    Column("id_spot", Integer, ForeignKey("spot.id_spot"), primary_key=True),
    Column("id_deporte", Integer, ForeignKey("deporte.id_deporte"), primary_key=True),
)

# NUMERIC columns come back as float, not Decimal.
variable_meteorologica_table = Table(
    "variable_meteorologica",
    metadata,
    Column("id_variable", Integer, primary_key=True, autoincrement=True),
    Column("id_proveedor", Integer),
    Column("spot", Integer, ForeignKey("spot.id_spot")),
    Column("nombre", String(80), nullable=False),
    Column("fecha", DateTime, nullable=False),
    Column("tipo_dato", String(40)),
    Column("range_min", Numeric(asdecimal=False)),
    Column("range_max", Numeric(asdecimal=False)),
    Column("valor", Numeric(asdecimal=False)),
    Column("unidad_base", String(20)),
    Column("ultima_actualizacion", DateTime),
)


def create_schema(engine: Engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
