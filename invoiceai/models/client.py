"""Client records, keyed by DNI."""

import re
import uuid
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

DNI_PATTERN = re.compile(r"^\d{7,8}[A-Za-z]?$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_dni(value: str) -> str:
    """Strip and check a DNI, e.g. 12345678A."""
    value = (value or "").strip()
    if not value:
        raise ValueError("DNI is required.")
    if not DNI_PATTERN.match(value):
        raise ValueError("Invalid DNI format (e.g., 12345678A).")
    return value


class ClientInput(BaseModel):
    """Values entered in the client form."""
    dni: str
    name: str
    email: Optional[str] = ""
    phone: Optional[str] = ""
    address: Optional[str] = ""

    @field_validator("dni")
    @classmethod
    def _check_dni(cls, value: str) -> str:
        return validate_dni(value)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Name is required.")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> str:
        value = (value or "").strip()
        if value and not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address.")
        return value

    @field_validator("phone", "address")
    @classmethod
    def _strip_optional(cls, value: Optional[str]) -> str:
        return (value or "").strip()


class Client(ClientInput):
    """A stored client."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_input(cls, values: ClientInput, client_id: Optional[str] = None) -> "Client":
        data = values.model_dump()
        if client_id:
            data["id"] = client_id
        return cls(**data)

    @property
    def display_label(self) -> str:
        return f"{self.name} (DNI: {self.dni})"


def format_validation_errors(error: ValidationError) -> dict[str, str]:
    """Map a pydantic ValidationError to {field: message} for form display."""
    messages = {}
    for item in error.errors():
        loc = item.get("loc") or ("__root__",)
        field_name = str(loc[0]) if loc else "__root__"
        msg = item.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        msg = msg.removeprefix("Value error, ")
        messages.setdefault(field_name, msg)
    return messages
