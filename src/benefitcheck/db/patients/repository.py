"""
Repository for patient records and the patient-scoped collections the
verification pipeline reads.

Sensitive values arrive as plaintext and are encrypted through the
SensitiveFieldStore before they reach a column.
"""

import json
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.crypto.service import FieldKind
from benefitcheck.db.coverage.model import CoverageByCode
from benefitcheck.db.patients.model import (
    Insurance,
    Patient,
    PatientAddress,
    PatientTelecom,
    VerificationStatusRecord,
)
from benefitcheck.sensitive.store import SensitiveFieldStore
from benefitcheck.utils.logger import logger

PRIMARY_INSURANCE = "Primary"

# Column name -> field kind for every encrypted column a caller may overwrite
PATIENT_SENSITIVE_COLUMNS = {
    "birth_date": FieldKind.DATE,
    "ssn": FieldKind.NATIONAL_ID,
}
INSURANCE_SENSITIVE_COLUMNS = {
    "policy_number": FieldKind.IDENTIFIER,
    "group_number": FieldKind.IDENTIFIER,
    "subscriber_id": FieldKind.IDENTIFIER,
}
TELECOM_KINDS = {"phone": FieldKind.PHONE, "email": FieldKind.EMAIL}


class PatientRepository:
    """Repository for patients, contact points, insurances and coverage rows."""

    def __init__(self, session: AsyncSession, store: SensitiveFieldStore | None = None):
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy async session
            store: Sensitive field store used to encrypt incoming values;
                only needed by methods that write sensitive values
        """
        self.session = session
        self.store = store

    def _seal(self, kind: FieldKind, plaintext: str | None) -> str | None:
        if self.store is None:
            raise RuntimeError(
                "PatientRepository needs a SensitiveFieldStore to write sensitive values"
            )
        return self.store.put(kind, plaintext).envelope

    # ========== Patients ==========

    async def create_patient(
        self,
        user_id: str,
        given_name: str,
        family_name: str,
        gender: str | None = None,
        birth_date: str | None = None,
        ssn: str | None = None,
        patient_id: str | None = None,
    ) -> Patient:
        """
        Create a patient, encrypting birth date and SSN.

        Returns:
            Patient: Created patient
        """
        patient = Patient(
            user_id=user_id,
            given_name=given_name,
            family_name=family_name,
            gender=gender,
            birth_date=self._seal(FieldKind.DATE, birth_date),
            ssn=self._seal(FieldKind.NATIONAL_ID, ssn),
        )
        if patient_id:
            patient.id = patient_id

        self.session.add(patient)
        await self.session.flush()
        await self.session.refresh(patient)

        logger.info(
            f"[PatientRepository] Created patient: id={patient.id}", user_id=user_id
        )
        return patient

    async def get_patient(
        self, patient_id: str, for_update: bool = False, for_share: bool = False
    ) -> Patient | None:
        """
        Get a patient by ID.

        Args:
            patient_id: Patient ID
            for_update: Take an exclusive row lock (cascade deletion)
            for_share: Take a shared row lock (writers of patient-scoped rows)

        Returns:
            Patient | None: Patient if found, None otherwise
        """
        stmt = select(Patient).where(Patient.id == patient_id)
        if for_update:
            stmt = stmt.with_for_update()
        elif for_share:
            stmt = stmt.with_for_update(read=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_sensitive_field(
        self, patient: Patient, column: str, plaintext: str | None
    ) -> Patient:
        """
        Overwrite an encrypted patient column with a freshly encrypted value.

        Raises:
            ValueError: If column is not an encrypted patient column
        """
        kind = PATIENT_SENSITIVE_COLUMNS.get(column)
        if kind is None:
            raise ValueError(f"Not an encrypted patient column: {column}")
        setattr(patient, column, self._seal(kind, plaintext))
        await self.session.flush()
        return patient

    # ========== Contact points ==========

    async def add_telecom(self, patient_id: str, system: str, value: str) -> PatientTelecom:
        kind = TELECOM_KINDS.get(system)
        if kind is None:
            raise ValueError(f"Unsupported telecom system: {system}")
        telecom = PatientTelecom(
            patient_id=patient_id,
            system=system,
            value=self._seal(kind, value),
        )
        self.session.add(telecom)
        await self.session.flush()
        return telecom

    async def get_telecom(self, patient_id: str, system: str) -> PatientTelecom | None:
        stmt = (
            select(PatientTelecom)
            .where(PatientTelecom.patient_id == patient_id)
            .where(PatientTelecom.system == system)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add_address(
        self,
        patient_id: str,
        line1: str | None = None,
        line2: str | None = None,
        city: str | None = None,
        state: str | None = None,
        postal_code: str | None = None,
    ) -> PatientAddress:
        address = PatientAddress(
            patient_id=patient_id,
            line1=self._seal(FieldKind.GENERIC, line1),
            line2=self._seal(FieldKind.GENERIC, line2),
            city=city,
            state=state,
            postal_code=postal_code,
        )
        self.session.add(address)
        await self.session.flush()
        return address

    async def get_addresses(self, patient_id: str) -> list[PatientAddress]:
        stmt = select(PatientAddress).where(PatientAddress.patient_id == patient_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ========== Insurance ==========

    async def add_insurance(
        self,
        patient_id: str,
        provider: str,
        type: str = PRIMARY_INSURANCE,
        policy_number: str | None = None,
        group_number: str | None = None,
        subscriber_id: str | None = None,
        **details: Any,
    ) -> Insurance:
        """
        Add an insurance policy, encrypting its identifiers.

        Args:
            patient_id: Patient ID
            provider: Insurance carrier name
            type: 'Primary' or 'Secondary'
            policy_number: Plaintext policy number
            group_number: Plaintext group number
            subscriber_id: Plaintext subscriber ID
            **details: Non-sensitive Insurance columns

        Returns:
            Insurance: Created insurance record
        """
        insurance = Insurance(
            patient_id=patient_id,
            provider=provider,
            type=type,
            policy_number=self._seal(FieldKind.IDENTIFIER, policy_number),
            group_number=self._seal(FieldKind.IDENTIFIER, group_number),
            subscriber_id=self._seal(FieldKind.IDENTIFIER, subscriber_id),
            **details,
        )
        self.session.add(insurance)
        await self.session.flush()
        return insurance

    async def get_insurances(self, patient_id: str) -> list[Insurance]:
        stmt = select(Insurance).where(Insurance.patient_id == patient_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_insurance(self, patient_id: str, insurance_id: str) -> Insurance | None:
        stmt = (
            select(Insurance)
            .where(Insurance.id == insurance_id)
            .where(Insurance.patient_id == patient_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_primary_insurance(self, patient_id: str) -> Insurance | None:
        """The patient's Primary insurance, else the first one on file."""
        insurances = await self.get_insurances(patient_id)
        for insurance in insurances:
            if insurance.type == PRIMARY_INSURANCE:
                return insurance
        return insurances[0] if insurances else None

    # ========== Coverage by code ==========

    async def save_coverage_by_code(
        self, patient_id: str, user_id: str, coverage_data: list[dict[str, Any]]
    ) -> list[CoverageByCode]:
        """
        Replace a patient's coverage-by-code rows.

        Each item is also kept whole as JSON in coverage_data.
        """
        await self.session.execute(
            delete(CoverageByCode).where(CoverageByCode.patient_id == patient_id)
        )
        rows = [
            CoverageByCode(
                patient_id=patient_id,
                user_id=user_id,
                sai_code=item.get("sai_code"),
                ref_ins_code=item.get("ref_ins_code"),
                category=item.get("category"),
                field_name=item.get("field_name"),
                pre_step_value=item.get("pre_step_value"),
                verified=item.get("verified", False),
                verified_by=item.get("verified_by"),
                comments=item.get("comments"),
                coverage_data=json.dumps(item),
            )
            for item in coverage_data
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def list_coverage_by_code(self, patient_id: str) -> list[CoverageByCode]:
        stmt = select(CoverageByCode).where(CoverageByCode.patient_id == patient_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ========== Stored verification status ==========

    async def get_verification_status(
        self, patient_id: str
    ) -> VerificationStatusRecord | None:
        stmt = select(VerificationStatusRecord).where(
            VerificationStatusRecord.patient_id == patient_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_verification_status(
        self, patient_id: str, stages: dict[str, str]
    ) -> VerificationStatusRecord:
        """Create or overwrite the stored verification status for a patient."""
        record = await self.get_verification_status(patient_id)
        if record is None:
            record = VerificationStatusRecord(patient_id=patient_id, **stages)
            self.session.add(record)
        else:
            for key, value in stages.items():
                setattr(record, key, value)
        await self.session.flush()
        return record
