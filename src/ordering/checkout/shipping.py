"""Shipping details collected at checkout."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from ordering.domain import ordering

_PHONE_SEPARATORS = re.compile(r"[\s\-]")


def normalize_phone(phone: str | None) -> str:
    return _PHONE_SEPARATORS.sub("", phone or "")


@ordering.value_object
class ShippingDetails:
    """Recipient and address. Phone numbers are 10 digits, pincodes 6 digits."""

    full_name: String(required=True, max_length=255)
    phone: String(required=True, max_length=20)
    email: String(max_length=254)
    house_number: String(required=True, max_length=255)
    colony: String(max_length=255)
    landmark: String(max_length=255)
    city: String(required=True, max_length=100)
    state: String(required=True, max_length=100)
    pincode: String(required=True, max_length=10)

    @invariant.post
    def required_parts_are_not_blank(self):
        errors = {}
        for field_name in ("full_name", "house_number", "city", "state"):
            if not (getattr(self, field_name) or "").strip():
                errors[field_name] = ["is required"]
        if errors:
            raise ValidationError(errors)

    @invariant.post
    def phone_has_ten_digits(self):
        if not re.fullmatch(r"\d{10}", normalize_phone(self.phone)):
            raise ValidationError({"phone": ["Enter a valid 10-digit phone number"]})

    @invariant.post
    def pincode_has_six_digits(self):
        if not re.fullmatch(r"\d{6}", (self.pincode or "").strip()):
            raise ValidationError({"pincode": ["Enter a valid 6-digit pincode"]})

    @invariant.post
    def email_is_plausible(self):
        if self.email and not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", self.email.strip()):
            raise ValidationError({"email": ["Enter a valid email address"]})

    def formatted(self) -> str:
        """Single-line address, e.g. ``12B, Green Park, Near City Mall, Pune, Maharashtra - 411001``."""
        parts = [self.house_number.strip()]
        if self.colony and self.colony.strip():
            parts.append(self.colony.strip())
        if self.landmark and self.landmark.strip():
            parts.append(f"Near {self.landmark.strip()}")
        parts.extend([self.city.strip(), self.state.strip()])
        return f"{', '.join(parts)} - {self.pincode.strip()}"
