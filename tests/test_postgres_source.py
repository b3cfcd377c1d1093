import datetime as dt
import unittest

from sqlalchemy import create_engine, func, select
from sqlalchemy.pool import StaticPool

from nautic.data_sources.postgres_source import PostgresSpotRepository
from nautic.data_sources.schema import (
    deporte_spot_table,
    deporte_table,
    spot_table,
    variable_meteorologica_table,
)
from nautic.domain import Activity, Spot, VariableMeteorologicaCreate
from nautic.spots import COASTAL_SPOTS


def make_repository() -> PostgresSpotRepository:
    """In-memory SQLite stand-in for Postgres, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    repository = PostgresSpotRepository(engine, timezone="UTC")
    repository.create_schema()
    return repository


def add_reading(repository, spot_id, nombre, valor, fecha):
    with repository.engine.begin() as conn:
        conn.execute(
            variable_meteorologica_table.insert().values(spot=spot_id, nombre=nombre, valor=valor, fecha=fecha)
        )


class TestSpotListing(unittest.TestCase):
    def setUp(self):
        self.repository = make_repository()

    def test_seed_then_list(self):
        inserted = self.repository.seed_spots(COASTAL_SPOTS)
        self.assertEqual(inserted, len(COASTAL_SPOTS))

        spots = self.repository.list_spots()
        self.assertEqual(len(spots), len(COASTAL_SPOTS))
        by_name = {s.name: s for s in spots}
        self.assertEqual(by_name["Pinamar"].sports, (Activity.SURF, Activity.KITE))
        self.assertEqual(by_name["Necochea"].sports, (Activity.SURF,))
        self.assertEqual([s.name for s in spots], sorted(s.name for s in spots))

    def test_seed_is_idempotent(self):
        self.repository.seed_spots(COASTAL_SPOTS)
        self.assertEqual(self.repository.seed_spots(COASTAL_SPOTS), 0)
        with self.repository.engine.connect() as conn:
            self.assertEqual(conn.execute(select(func.count()).select_from(spot_table)).scalar(), 13)
            self.assertEqual(conn.execute(select(func.count()).select_from(deporte_table)).scalar(), 2)

    def test_spot_without_sports_and_unknown_sport(self):
        with self.repository.engine.begin() as conn:
            conn.execute(spot_table.insert().values(id_spot=50, nombre="Punta Mogotes", coord_lat=-38.08, coord_lng=-57.54))
            conn.execute(deporte_table.insert().values(id_deporte=9, nombre="Windsurf"))
            conn.execute(spot_table.insert().values(id_spot=51, nombre="Quequén", coord_lat=-38.57, coord_lng=-58.69))
            conn.execute(deporte_spot_table.insert().values(id_spot=51, id_deporte=9))

        spots = {s.name: s for s in self.repository.list_spots()}
        self.assertEqual(spots["Punta Mogotes"].sports, ())
        self.assertEqual(spots["Quequén"].sports, ())


class TestDailyAverage(unittest.TestCase):
    def setUp(self):
        self.repository = make_repository()
        self.repository.seed_spots(COASTAL_SPOTS)
        self.today = self.repository.today()
        self.noon = dt.datetime.combine(self.today, dt.time(12, 0))

    def test_single_temperature_row(self):
        add_reading(self.repository, 1, "Temperatura", 20, self.noon)

        sample = self.repository.average_for_spot_day(1, 0)
        self.assertEqual(sample.temperature_2m, 20)
        self.assertIsNone(sample.wind_speed_10m)
        self.assertIsNone(sample.precipitation)
        self.assertIsNone(sample.wave_height)

    def test_synonyms_are_averaged_together(self):
        add_reading(self.repository, 2, "viento", 6.0, self.noon)
        add_reading(self.repository, 2, "WIND_SPEED_10M", 10.0, self.noon + dt.timedelta(hours=3))
        add_reading(self.repository, 2, "oleaje", 1.2, self.noon)
        add_reading(self.repository, 2, "humedad", 80.0, self.noon)

        sample = self.repository.average_for_spot_day(2, 0)
        self.assertAlmostEqual(sample.wind_speed_10m, 8.0)
        self.assertAlmostEqual(sample.wave_height, 1.2)
        self.assertIsNone(sample.temperature_2m)

    def test_day_offset_selects_other_dates(self):
        add_reading(self.repository, 3, "lluvia", 2.0, self.noon + dt.timedelta(days=1))
        add_reading(self.repository, 3, "lluvia", 9.0, self.noon - dt.timedelta(days=1))

        self.assertIsNone(self.repository.average_for_spot_day(3, 0).precipitation)
        self.assertEqual(self.repository.average_for_spot_day(3, 1).precipitation, 2.0)
        self.assertEqual(self.repository.average_for_spot_day(3, -1).precipitation, 9.0)

    def test_no_rows_is_all_null(self):
        self.assertTrue(self.repository.average_for_spot_day(4, 0).is_empty())

    def test_daily_average_needs_database_id(self):
        with self.assertRaises(LookupError):
            self.repository.daily_average(Spot(name="Nowhere", lat=0, lon=0), 0)

    def test_daily_average_uses_spot_id(self):
        add_reading(self.repository, 9, "temp", 17.5, self.noon)
        sample = self.repository.daily_average(COASTAL_SPOTS[8], 0)
        self.assertEqual(sample.temperature_2m, 17.5)

    def test_invalid_timezone_falls_back_to_utc(self):
        repository = PostgresSpotRepository(self.repository.engine, timezone="Mars/Olympus")
        self.assertEqual(repository.timezone, "UTC")


class TestInsertVariable(unittest.TestCase):
    def setUp(self):
        self.repository = make_repository()
        self.repository.seed_spots(COASTAL_SPOTS)

    def test_insert_returns_generated_id(self):
        payload = VariableMeteorologicaCreate(
            id_proveedor=1,
            spot=9,
            nombre="Temperatura",
            fecha=dt.datetime(2024, 1, 1, 12, 0),
            tipo_dato="float",
            range_min=-10,
            range_max=45,
            valor=21.5,
            unidad_base="°C",
            ultima_actualizacion=dt.datetime(2024, 1, 1, 12, 5),
        )
        first = self.repository.insert_variable(payload)
        second = self.repository.insert_variable(payload)

        self.assertIsNotNone(first.id_variable)
        self.assertNotEqual(first.id_variable, second.id_variable)
        self.assertEqual(first.valor, 21.5)
        self.assertEqual(first.nombre, "Temperatura")
        self.assertEqual(first.fecha, dt.datetime(2024, 1, 1, 12, 0))


if __name__ == "__main__":
    unittest.main()
