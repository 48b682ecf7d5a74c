"""
Shared pytest fixtures.

Integration tests run against in-memory SQLite through aiosqlite, with
foreign keys enforced and SAVEPOINT support enabled.
"""

import json

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import benefitcheck.db.models  # noqa: F401
from benefitcheck.crypto.service import CryptoService
from benefitcheck.db.coverage.model import VERIFIED_BY_API
from benefitcheck.db.database import Base
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.sensitive.store import SensitiveFieldStore

# Low iteration count keeps key derivation fast in tests
TEST_KDF_ITERATIONS = 1_000
TEST_MASTER_KEY = "test-master-key-do-not-use"

OWNER_ID = "user-owner-1"
OTHER_USER_ID = "user-other-2"


@pytest.fixture
def crypto() -> CryptoService:
    return CryptoService(TEST_MASTER_KEY, iterations=TEST_KDF_ITERATIONS)


@pytest.fixture
def store(crypto) -> SensitiveFieldStore:
    return SensitiveFieldStore(crypto)


@pytest_asyncio.fixture
async def engine():
    """In-memory database shared by every session of one test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINT works
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def patient_repository(session, store) -> PatientRepository:
    return PatientRepository(session, store)


@pytest_asyncio.fixture
async def patient(session, patient_repository):
    """
    A patient owned by OWNER_ID with contact points, an address, a primary
    insurance and two coverage-by-code rows.
    """
    patient = await patient_repository.create_patient(
        user_id=OWNER_ID,
        given_name="Maria",
        family_name="Lopez",
        gender="female",
        birth_date="1985-03-22",
        ssn="123-45-6789",
    )
    await patient_repository.add_telecom(patient.id, "phone", "(555) 123-4567")
    await patient_repository.add_telecom(patient.id, "email", "maria@example.com")
    await patient_repository.add_address(
        patient.id,
        line1="742 Evergreen Terrace",
        line2="Apt 2",
        city="Springfield",
        state="IL",
        postal_code="62704",
    )
    await patient_repository.add_insurance(
        patient.id,
        provider="Delta Dental",
        type="Primary",
        policy_number="POL-998877",
        group_number="GRP-1234",
        subscriber_id="SUB-5555",
        subscriber_name="Maria Lopez",
        relationship="Self",
    )
    await patient_repository.save_coverage_by_code(
        patient.id,
        OWNER_ID,
        [
            {
                "sai_code": "D0120",
                "ref_ins_code": "D0120",
                "category": "Preventive",
                "field_name": "coverage_percent",
                "pre_step_value": "100",
                "verified": False,
                "verified_by": VERIFIED_BY_API,
            },
            {
                "sai_code": "D2740",
                "ref_ins_code": "D2740",
                "category": "Major",
                "field_name": "coverage_percent",
                "pre_step_value": "50",
                "verified": False,
                "verified_by": "Manual",
                "comments": json.dumps({"note": "needs call"}),
            },
        ],
    )
    await session.commit()
    return patient
