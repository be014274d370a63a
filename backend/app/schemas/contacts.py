from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- OUT MODELS ----------
class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    external_id: Optional[str] = Field(default=None, serialization_alias="externalId")
    first_name: Optional[str] = Field(default=None, serialization_alias="firstName")
    last_name: Optional[str] = Field(default=None, serialization_alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    birthdate: Optional[date] = Field(default=None, serialization_alias="birthDate")
    mailing_street: Optional[str] = Field(default=None, serialization_alias="mailingStreet")
    mailing_city: Optional[str] = Field(default=None, serialization_alias="mailingCity")
    mailing_postal_code: Optional[str] = Field(default=None, serialization_alias="mailingPostalCode")
    mailing_state: Optional[str] = Field(default=None, serialization_alias="mailingState")
    mailing_country: Optional[str] = Field(default=None, serialization_alias="mailingCountry")
    last_synced_at: Optional[datetime] = Field(default=None, serialization_alias="lastSyncedAt")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

class ContactList(BaseModel):
    items: List[ContactOut]
    page: int
    limit: int
    total: int

# ---------- IN MODELS ----------
# Accept BOTH snake_case and camelCase
class ContactWrite(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    external_id: Optional[str] = Field(default=None, alias="externalId")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    birthdate: Optional[date] = Field(default=None, alias="birthDate")
    mailing_street: Optional[str] = Field(default=None, alias="mailingStreet")
    mailing_city: Optional[str] = Field(default=None, alias="mailingCity")
    mailing_postal_code: Optional[str] = Field(default=None, alias="mailingPostalCode")
    mailing_state: Optional[str] = Field(default=None, alias="mailingState")
    mailing_country: Optional[str] = Field(default=None, alias="mailingCountry")

    @field_validator("external_id", mode="before")
    @classmethod
    def _external_id_text(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

class ContactCreate(ContactWrite):
    pass

class ContactUpdate(ContactWrite):
    pass
