# app/services/sync/mapper.py
"""
Translation between the remote directory's user JSON and local contact fields.

Inbound:  {"email", "phone", "birthDate", "address": {...}}  ->  Contact columns
Outbound: Contact columns  ->  {"salesforceId", "firstName", "lastName", "email", "phone"}

Pure functions: no I/O, no session access.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Optional

from dateutil import parser as dateparse
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# Sent in place of blank required fields; the directory rejects empty values.
UNKNOWN = "unknown"

# A calendar date needs year, month and day; "1990" or "1990-05" is not one.
_FULL_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}($|[T ])")


def _as_text(v: Any) -> Optional[str]:
    if v is None or isinstance(v, (dict, list)):
        return None
    if isinstance(v, bool):
        return str(v).lower()
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RemoteAddress(_Lenient):
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None  # numbers in the payload are kept as text
    state: Optional[str] = None
    country: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _scalars_to_text(cls, v):
        return _as_text(v)


class RemoteUser(_Lenient):
    email: Optional[str] = None
    phone: Optional[str] = None
    birthDate: Optional[str] = None
    address: Optional[RemoteAddress] = None

    @field_validator("email", "phone", "birthDate", mode="before")
    @classmethod
    def _scalars_to_text(cls, v):
        return _as_text(v)

    @field_validator("address", mode="before")
    @classmethod
    def _address_object_only(cls, v):
        return v if isinstance(v, dict) else None


def parse_birthdate(text: Optional[str]) -> Optional[date]:
    if not text:
        return None
    text = text.strip()
    try:
        if not _FULL_DATE.match(text):
            raise ValueError("not a full date")
        return dateparse.isoparse(text).date()
    except (ValueError, OverflowError):
        logger.warning("[sync] mapper: unparseable birthDate=%r, leaving unset", text)
        return None


def contact_fields_from_remote(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a remote user document to Contact column values.
    Only keys present in the document are returned, so absent values never
    clear what an existing contact already holds.
    """
    user = RemoteUser.model_validate(document)

    fields: Dict[str, Any] = {}
    if user.email is not None:
        fields["email"] = user.email
    if user.phone is not None:
        fields["phone"] = user.phone

    birthdate = parse_birthdate(user.birthDate)
    if birthdate is not None:
        fields["birthdate"] = birthdate

    addr = user.address
    if addr is not None:
        fields["mailing_street"] = addr.address
        fields["mailing_city"] = addr.city
        fields["mailing_postal_code"] = addr.postalCode
        fields["mailing_state"] = addr.state
        fields["mailing_country"] = addr.country

    return fields


def _or_unknown(value: Optional[str]) -> str:
    return value if value and value.strip() else UNKNOWN


def contact_to_remote_payload(contact) -> Dict[str, str]:
    """`contact` is anything with id/first_name/last_name/email/phone attributes."""
    return {
        "salesforceId": str(contact.id),
        "firstName": _or_unknown(contact.first_name),
        "lastName": _or_unknown(contact.last_name),
        "email": _or_unknown(contact.email),
        "phone": _or_unknown(contact.phone),
    }
