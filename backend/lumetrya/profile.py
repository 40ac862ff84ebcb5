"""Normalization of loosely-shaped company profile data.

Profiles reach us from the settings form, from imported JSON backups and from
the company lookup service, and the three producers disagree on field names.
`normalize_company_profile` is the single place that maps them onto
`CompanyProfile`. Precedence, first non-empty value wins:

    companyName      companyName > details.legalName > legalName > name > "—"
    details.legalName  details.legalName > legalName > companyName
    details.tin      details.tin > tin > bin
    details.legalAddress  details.legalAddress > legalAddress > contacts.address > address
    contacts.phones  contacts.phones > phones > phone (single value)
    contacts.email   contacts.email > email
    contacts.address contacts.address > address > details.legalAddress
    websites         websites > website (single value)
    socialMedia      socialMedia > social_media
    about            about > description
    aiSystemInstruction  aiSystemInstruction > systemInstruction
    language         language if one of ru/en/kz, else "ru"

Bump PROFILE_SCHEMA_VERSION whenever this table changes.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping, Optional

from lumetrya.schemas.user_data import CompanyContacts, CompanyDetails, CompanyProfile, Employee

PROFILE_SCHEMA_VERSION = 1

LANGUAGES = ("ru", "en", "kz")
DEFAULT_COMPANY_NAME = "—"

_DETAIL_FIELDS = (
    "legalName", "tin", "kpp", "ogrn", "legalAddress",
    "bankName", "bic", "correspondentAccount", "checkingAccount",
)


def _get(data: Mapping[str, Any], path: str) -> Any:
    cur: Any = data
    for part in path.split("."):
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(part)
    return cur


def _first(data: Mapping[str, Any], *paths: str, default: Any = "") -> Any:
    for path in paths:
        v = _get(data, path)
        if isinstance(v, str):
            v = v.strip()
        if v not in (None, "", [], {}):
            return v
    return default


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple, set)):
        return [str(value)]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _employees(raw: Any) -> List[Employee]:
    out = []
    for e in raw or []:
        if not isinstance(e, Mapping):
            continue
        out.append(Employee(
            id=str(e.get("id") or uuid.uuid4()),
            name=str(e.get("name") or ""),
            position=str(e.get("position") or ""),
        ))
    return out


def normalize_company_profile(raw: Optional[Mapping[str, Any]]) -> CompanyProfile:
    if isinstance(raw, CompanyProfile):
        return raw
    data: Dict[str, Any] = dict(raw or {})

    details = {f: str(_first(data, f"details.{f}")) for f in _DETAIL_FIELDS}
    details["legalName"] = str(_first(data, "details.legalName", "legalName", "companyName"))
    details["tin"] = str(_first(data, "details.tin", "tin", "bin"))
    details["legalAddress"] = str(_first(data, "details.legalAddress", "legalAddress", "contacts.address", "address"))

    contacts = CompanyContacts(
        phones=_str_list(_first(data, "contacts.phones", "phones", "phone", default=None)),
        email=str(_first(data, "contacts.email", "email")),
        address=str(_first(data, "contacts.address", "address", "details.legalAddress")),
    )

    language = str(_first(data, "language", default="ru")).lower()
    if language not in LANGUAGES:
        language = "ru"

    return CompanyProfile(
        companyName=str(_first(data, "companyName", "details.legalName", "legalName", "name",
                               default=DEFAULT_COMPANY_NAME)),
        details=CompanyDetails(**details),
        contacts=contacts,
        employees=_employees(data.get("employees")),
        socialMedia=_str_list(_first(data, "socialMedia", "social_media", default=None)),
        websites=_str_list(_first(data, "websites", "website", default=None)),
        about=str(_first(data, "about", "description")),
        aiSystemInstruction=str(_first(data, "aiSystemInstruction", "systemInstruction")),
        language=language,
        darkModeEnabled=bool(data.get("darkModeEnabled", False)),
    )
