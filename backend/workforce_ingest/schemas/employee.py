"""Employee enrollment import schema."""

from __future__ import annotations

from typing import Any

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.schemas.fields import EntitySchema, FieldSpec, MediaFieldSpec, is_blank
from workforce_ingest.schemas.validators import (
    as_datetime,
    as_text,
    as_upper_text,
    date_value,
    digits,
    email,
    exact_length,
    matches,
    one_of,
    only_digits,
)

GENDERS = ("Male", "Female", "Other")
MARITAL_STATUSES = ("Unmarried", "Married", "Divorced", "Widowed", "Single")
ID_PROOF_TYPES = ("Aadhar Card", "Voter ID", "Driving License", "Passport")

PAN_PATTERN = r"[A-Z]{5}[0-9]{4}[A-Z]"
TCS_CLIENT_NAMES = {"TCS", "TATA CONSULTANCY SERVICES"}


def _aadhar_number_check(values: dict[str, Any]) -> list[str]:
    if as_text(values.get("idProofType") or "") != "Aadhar Card":
        return []
    number = values.get("idProofNumber")
    if is_blank(number) or len(only_digits(number)) != 12:
        return ["Aadhar Card number must be 12 digits."]
    return []


def _tcs_resource_id_check(values: dict[str, Any]) -> list[str]:
    client = values.get("clientName")
    if is_blank(client) or as_upper_text(client) not in TCS_CLIENT_NAMES:
        return []
    if is_blank(values.get("resourceIdNumber")):
        return ["Resource ID number is required for TCS client."]
    return []


EMPLOYEE_SCHEMA = EntitySchema(
    kind=EntityKind.EMPLOYEE,
    collection="employees",
    label="employee",
    fields=(
        FieldSpec("firstName", "FirstName", required=True),
        FieldSpec("lastName", "LastName", required=True),
        FieldSpec(
            "phoneNumber", "PhoneNumber", required=True,
            validate=digits(10, "Phone number must be 10 digits."),
            transform=only_digits,
            headers=("Mobile", "Mobile Number"),
        ),
        FieldSpec("emailAddress", "EmailAddress", validate=email, headers=("Email",), default=""),
        FieldSpec("clientName", "ClientName", headers=("Client",), default="Unassigned"),
        FieldSpec(
            "joiningDate", "JoiningDate", required=True,
            validate=date_value, transform=as_datetime,
        ),
        FieldSpec("dateOfBirth", "DateOfBirth", validate=date_value, transform=as_datetime, headers=("DOB",)),
        FieldSpec("gender", "Gender", validate=one_of(GENDERS), default="Other"),
        FieldSpec("fatherName", "FatherName", default=""),
        FieldSpec("motherName", "MotherName", default=""),
        FieldSpec("maritalStatus", "MaritalStatus", validate=one_of(MARITAL_STATUSES), default="Unmarried"),
        FieldSpec("spouseName", "SpouseName", default=""),
        FieldSpec("district", "District", default=""),
        FieldSpec("idProofType", "IDProofType", validate=one_of(ID_PROOF_TYPES), default=""),
        FieldSpec("idProofNumber", "IDProofNumber", default=""),
        FieldSpec("bankAccountNumber", "BankAccountNumber", default=""),
        FieldSpec(
            "ifscCode", "IFSCCode",
            validate=exact_length(11, "IFSC code must be 11 characters."),
            transform=as_upper_text,
            default="",
        ),
        FieldSpec("bankName", "BankName", default=""),
        FieldSpec("fullAddress", "FullAddress", headers=("Address",), default=""),
        FieldSpec(
            "panNumber", "PANNumber",
            validate=matches(PAN_PATTERN, "Invalid PAN number format (e.g., ABCDE1234F).", upper=True),
            transform=as_upper_text,
            default="",
        ),
        FieldSpec("epfUanNumber", "EPFUANNumber", default=""),
        FieldSpec("esicNumber", "ESICNumber", default=""),
        FieldSpec("resourceIdNumber", "ResourceIDNumber", default=""),
        FieldSpec("status", "Status", default="Active"),
    ),
    media_fields=(
        MediaFieldSpec(
            source="photoBlob",
            target="profilePictureUrl",
            folder="employee_photos",
            max_size=(800, 800),
            fallback_source="profilePictureUrl",
            headers=("PhotoBlob",),
        ),
        MediaFieldSpec(
            source="idProofDocument",
            target="idProofDocumentUrl",
            folder="employee_documents",
            max_size=(1024, 1024),
            headers=("IDProofDocumentURL",),
        ),
        MediaFieldSpec(
            source="bankPassbookStatement",
            target="bankPassbookStatementUrl",
            folder="employee_documents",
            max_size=(1024, 1024),
            headers=("BankPassbookStatementURL",),
        ),
    ),
    row_checks=(_aadhar_number_check, _tcs_resource_id_check),
    natural_key=None,
    template_example={
        "FirstName": "Anil",
        "LastName": "Kumar",
        "PhoneNumber": "9876543210",
        "EmailAddress": "anil.kumar@example.com",
        "ClientName": "TCS",
        "JoiningDate": "2025-04-01",
        "DateOfBirth": "1990-06-15",
        "Gender": "Male",
        "MaritalStatus": "Married",
        "District": "Ernakulam",
        "IDProofType": "Aadhar Card",
        "IDProofNumber": "123412341234",
        "IFSCCode": "SBIN0001234",
        "PANNumber": "ABCDE1234F",
        "ResourceIDNumber": "RES-1001",
        "Status": "Active",
    },
)
