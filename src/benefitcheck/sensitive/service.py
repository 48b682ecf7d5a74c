"""
Record-level reveal of a single sensitive field.

Resolves a field name to the encrypted column that holds it, checks that the
requester owns the patient (or is an admin) and decrypts just that value.
Every attempt leaves an audit log entry; the plaintext never does.
"""

from benefitcheck.auth.dependencies import owner_check_for
from benefitcheck.auth.schemas import User
from benefitcheck.crypto.service import FieldKind
from benefitcheck.db.patients.model import Patient, PatientAddress
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.exceptions import (
    AccessDeniedError,
    BenefitCheckError,
    NotFoundError,
    UnsupportedFieldError,
)
from benefitcheck.sensitive.schemas import (
    MaskedInsurance,
    MaskedPatientResponse,
    SensitiveField,
)
from benefitcheck.sensitive.store import OwnerCheck, SensitiveFieldStore
from benefitcheck.utils.logger import logger

PATIENT_FIELDS: dict[str, FieldKind] = {
    "birth_date": FieldKind.DATE,
    "ssn": FieldKind.NATIONAL_ID,
    "phone": FieldKind.PHONE,
    "email": FieldKind.EMAIL,
    "address": FieldKind.GENERIC,
}
INSURANCE_FIELDS: dict[str, FieldKind] = {
    "policy_number": FieldKind.IDENTIFIER,
    "group_number": FieldKind.IDENTIFIER,
    "subscriber_id": FieldKind.IDENTIFIER,
}
REVEALABLE_FIELDS = frozenset(PATIENT_FIELDS) | frozenset(INSURANCE_FIELDS)


class RevealService:
    """Reveals one sensitive field of one patient for one requester.

    Also builds the masked view every other read gets.
    """

    def __init__(self, patients: PatientRepository, store: SensitiveFieldStore):
        self.patients = patients
        self.store = store

    async def reveal_field(
        self,
        patient_id: str,
        field_name: str,
        requester: User,
        insurance_id: str | None = None,
    ) -> str:
        """
        Decrypt a single sensitive field.

        The owner check runs whether or not the patient exists, so a
        non-owner cannot tell a missing patient from a foreign one.

        Args:
            patient_id: Patient ID
            field_name: One of REVEALABLE_FIELDS
            requester: The authenticated requester
            insurance_id: Insurance record ID for insurance fields; the
                primary insurance is used when omitted

        Returns:
            str: The plaintext value

        Raises:
            UnsupportedFieldError: If field_name is not revealable
            AccessDeniedError: If the requester is neither owner nor admin
            NotFoundError: If the patient, record or value does not exist
            AuthenticationFailureError: If the stored envelope is corrupt
        """
        if field_name not in REVEALABLE_FIELDS:
            self._audit(requester, patient_id, field_name, "unsupported_field")
            raise UnsupportedFieldError(f"Field cannot be revealed: {field_name}")

        patient = await self.patients.get_patient(patient_id)
        owner_check = owner_check_for(requester, patient.user_id if patient else None)

        try:
            if not owner_check():
                raise AccessDeniedError()
            if patient is None:
                raise NotFoundError(f"Patient not found: {patient_id}")

            if field_name in INSURANCE_FIELDS:
                value = await self._reveal_insurance_field(
                    owner_check, patient_id, field_name, insurance_id
                )
            elif field_name == "address":
                value = await self._reveal_address(owner_check, patient_id)
            elif field_name in ("phone", "email"):
                telecom = await self.patients.get_telecom(patient_id, field_name)
                value = self.store.reveal(
                    owner_check,
                    SensitiveField.from_envelope(telecom.value) if telecom else None,
                )
            else:
                value = self.store.reveal(
                    owner_check,
                    SensitiveField.from_envelope(getattr(patient, field_name)),
                )
        except BenefitCheckError as e:
            self._audit(requester, patient_id, field_name, type(e).__name__)
            raise

        self._audit(requester, patient_id, field_name, "revealed")
        return value

    async def masked_fields(self, patient: Patient) -> MaskedPatientResponse:
        """
        Masked view of a patient's sensitive fields and insurance identifiers.

        Nothing is decrypted; callers authorize before asking.
        """
        telecom = {
            system: await self.patients.get_telecom(patient.id, system)
            for system in ("phone", "email")
        }
        addresses = await self.patients.get_addresses(patient.id)
        envelopes = {
            "birth_date": patient.birth_date,
            "ssn": patient.ssn,
            "phone": telecom["phone"].value if telecom["phone"] else None,
            "email": telecom["email"].value if telecom["email"] else None,
            "address": (addresses[0].line1 or addresses[0].line2) if addresses else None,
        }
        fields = {
            name: self.store.get_masked(SensitiveField.from_envelope(envelopes[name]), kind)
            for name, kind in PATIENT_FIELDS.items()
        }

        insurances = [
            MaskedInsurance(
                id=insurance.id,
                provider=insurance.provider,
                type=insurance.type,
                fields={
                    name: self.store.get_masked(
                        SensitiveField.from_envelope(getattr(insurance, name)), kind
                    )
                    for name, kind in INSURANCE_FIELDS.items()
                },
            )
            for insurance in await self.patients.get_insurances(patient.id)
        ]
        return MaskedPatientResponse(
            patient_id=patient.id, fields=fields, insurances=insurances
        )

    async def _reveal_insurance_field(
        self,
        owner_check: OwnerCheck,
        patient_id: str,
        field_name: str,
        insurance_id: str | None,
    ) -> str:
        if insurance_id:
            insurance = await self.patients.get_insurance(patient_id, insurance_id)
        else:
            insurance = await self.patients.get_primary_insurance(patient_id)
        if insurance is None:
            raise NotFoundError("Insurance not found")
        return self.store.reveal(
            owner_check, SensitiveField.from_envelope(getattr(insurance, field_name))
        )

    async def _reveal_address(self, owner_check: OwnerCheck, patient_id: str) -> str:
        addresses = await self.patients.get_addresses(patient_id)
        if not addresses:
            raise NotFoundError("Address not found")
        return self._format_address(owner_check, addresses[0])

    def _format_address(self, owner_check: OwnerCheck, address: PatientAddress) -> str:
        lines = [
            self.store.reveal(owner_check, line)
            for line in (
                SensitiveField.from_envelope(address.line1),
                SensitiveField.from_envelope(address.line2),
            )
            if line.is_encrypted
        ]
        region = " ".join(part for part in (address.state, address.postal_code) if part)
        parts = [part for part in (*lines, address.city, region) if part]
        if not parts:
            raise NotFoundError("Address has no stored value")
        return ", ".join(parts)

    def _audit(self, requester: User, patient_id: str, field_name: str, outcome: str) -> None:
        logger.info(
            "[RevealService] Sensitive field reveal",
            audit=True,
            requester_id=requester.id,
            requester_role=requester.role.value,
            patient_id=patient_id,
            field=field_name,
            outcome=outcome,
        )
