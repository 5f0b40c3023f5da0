# storefront/domain/addresses.py
"""
Budowanie adresow zamowienia z danych sesji Stripe.

Pola strukturalne z customer_details maja pierwszenstwo. Napis z metadata
("Jan Kowalski, Main St 1, City, State 12345, Country") to legacy fallback:
adres zawierajacy przecinek rozjedzie sie na zle pola.
"""
from dataclasses import dataclass
from typing import Optional

from storefront.domain.errors import InvalidAddress
from storefront.domain.schemas import CheckoutSession, CustomerAddress, CustomerDetails


@dataclass
class ParsedAddress:
    name: str = ""
    address_line_1: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


@dataclass
class AddressFields:
    type: str
    first_name: str
    last_name: str
    address_line_1: str
    address_line_2: Optional[str]
    city: str
    state: str
    postal_code: str
    country: str
    phone: Optional[str]


def parse_shipping_address(value: str | None) -> ParsedAddress:
    if not value:
        return ParsedAddress()

    parts = [p.strip() for p in value.split(",")]
    parts += [""] * (5 - len(parts))

    # "State 12345" -> stan + kod, sam kod tez sie zdarza
    state_postal = parts[3].split()
    state, postal = "", ""
    if len(state_postal) == 1:
        state = state_postal[0]
    elif len(state_postal) > 1:
        state = " ".join(state_postal[:-1])
        postal = state_postal[-1]

    return ParsedAddress(
        name=parts[0],
        address_line_1=parts[1],
        city=parts[2],
        state=state,
        postal_code=postal,
        country=parts[4],
    )


def _split_name(name: str) -> tuple[str, str]:
    pieces = name.strip().split(" ", 1)
    first = pieces[0] if pieces else ""
    last = pieces[1].strip() if len(pieces) > 1 else ""
    return first, last


def build_address(session: CheckoutSession, address_type: str) -> AddressFields:
    """Adres dla zamowienia, raises InvalidAddress gdy brak ulicy i miasta."""
    details = session.customer_details or CustomerDetails()
    structured = details.address or CustomerAddress()
    legacy = parse_shipping_address(session.meta("shipping_address"))

    first_name, last_name = _split_name(details.name or legacy.name)

    fields = AddressFields(
        type=address_type,
        first_name=first_name,
        last_name=last_name,
        address_line_1=structured.line1 or legacy.address_line_1,
        address_line_2=structured.line2,
        city=structured.city or legacy.city,
        state=structured.state or legacy.state,
        postal_code=structured.postal_code or legacy.postal_code,
        country=structured.country or legacy.country or "US",
        phone=details.phone,
    )

    if not fields.address_line_1 and not fields.city:
        raise InvalidAddress(f"No usable {address_type} address in checkout session {session.id}")

    return fields
