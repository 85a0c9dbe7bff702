"""
PII (Personally Identifiable Information) masking utilities.
"""
import re
from typing import Any

UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.I)
PHONE_RE = re.compile(r'^[\d\s\+\-\(\)]+$')

PII_FIELDS = {
    "email", "phone", "name", "full_name", "fullname", "user_id", "userid",
    "address_line1", "addressline1", "address_line2", "addressline2",
    "order_id", "orderid", "id",
}
ADDRESS_FIELDS = {"shipping_address", "shippingaddress", "billing_address", "billingaddress"}


def mask_email(email: str) -> str:
    """Mask email address."""
    if "@" not in email:
        return email
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        masked = "**"
    else:
        masked = local[:2] + "*" * (len(local) - 2)
    return f"{masked}@{domain}"


def mask_phone(phone: str) -> str:
    """Mask phone number."""
    if len(phone) <= 4:
        return "*" * len(phone)
    return phone[:2] + "*" * (len(phone) - 4) + phone[-2:]


def mask_name(name: str) -> str:
    """Mask name."""
    if len(name) <= 2:
        return "**"
    return name[0] + "*" * (len(name) - 2) + name[-1]


def mask_identifier(value: str) -> str:
    """Mask an identifier (UUIDs keep their first 8 chars)."""
    if UUID_RE.match(value):
        return value[:8] + "-****-****-****-************"
    if len(value) <= 4:
        return "*" * len(value)
    return value[:4] + "*" * (len(value) - 4)


def mask_value(key: str, value: str) -> str:
    """Mask a string according to what it looks like."""
    if "@" in value:
        return mask_email(value)
    if UUID_RE.match(value):
        return mask_identifier(value)
    if PHONE_RE.match(value):
        return mask_phone(value)
    if "name" in key.lower() or "address" in key.lower():
        return mask_name(value)
    return mask_identifier(value)


def mask_pii_in_dict(data: dict) -> dict:
    """Mask PII in dictionary recursively. Addresses are replaced entirely."""
    masked = {}
    for key, value in data.items():
        key_lower = key.lower()

        if key_lower in ADDRESS_FIELDS and value is not None:
            masked[key] = "<redacted>"
        elif isinstance(value, dict):
            masked[key] = mask_pii_in_dict(value)
        elif isinstance(value, list):
            masked[key] = [mask_pii_in_dict(item) if isinstance(item, dict) else item for item in value]
        elif key_lower in PII_FIELDS and isinstance(value, str):
            masked[key] = mask_value(key, value)
        else:
            masked[key] = value

    return masked


def mask_headers(headers: Any) -> dict:
    """Selected request headers, masked for logging."""
    data = {
        "user_id": headers.get("X-User-ID"),
        "role": headers.get("X-User-Role"),
    }
    key = headers.get("Idempotency-Key")
    data["idempotency_key"] = key[:8] + "..." if key else None
    return mask_pii_in_dict({k: v for k, v in data.items() if v is not None})
