# distribuidora/services/whatsapp/phone.py

import re

from .errors import InvalidRecipient

_NON_DIGITS = re.compile(r"\D")


def normalize_recipient(phone: str, country_prefix: str = "55") -> str:
    """Mantém só os dígitos e prefixa o DDI quando ausente.

    "(88) 99671-0011" e "5588996710011" resultam em "5588996710011".
    """
    digits = _NON_DIGITS.sub("", phone or "")
    if not digits:
        raise InvalidRecipient(f"Telefone sem dígitos: {phone!r}")
    if not digits.startswith(country_prefix):
        digits = f"{country_prefix}{digits}"
    return digits
