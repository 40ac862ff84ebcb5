# backend/tests/test_profile.py
import pytest

from lumetrya.profile import DEFAULT_COMPANY_NAME, normalize_company_profile
from lumetrya.schemas.user_data import CompanyProfile


@pytest.mark.parametrize("raw,expected", [
    ({"companyName": "Brand", "details": {"legalName": "Brand LLP"}, "name": "x"}, "Brand"),
    ({"companyName": "  ", "details": {"legalName": "Brand LLP"}}, "Brand LLP"),
    ({"legalName": "Flat LLP", "name": "x"}, "Flat LLP"),
    ({"name": "Lookup Name"}, "Lookup Name"),
    ({}, DEFAULT_COMPANY_NAME),
    (None, DEFAULT_COMPANY_NAME),
])
def test_company_name_precedence(raw, expected):
    assert normalize_company_profile(raw).companyName == expected

def test_lookup_service_shape():
    raw = {
        "name": "Acme",
        "bin": "123456789012",
        "address": "Almaty, Abay 1",
        "phone": "+7 700 000 00 00",
        "email": "hi@acme.kz",
        "website": "https://acme.kz",
        "description": "Rubber goods",
    }
    p = normalize_company_profile(raw)
    assert p.details.tin == "123456789012"
    assert p.details.legalName == ""
    assert p.details.legalAddress == "Almaty, Abay 1"
    assert p.contacts.address == "Almaty, Abay 1"
    assert p.contacts.phones == ["+7 700 000 00 00"]
    assert p.contacts.email == "hi@acme.kz"
    assert p.websites == ["https://acme.kz"]
    assert p.about == "Rubber goods"

def test_nested_values_win_over_flat_ones():
    p = normalize_company_profile({
        "details": {"tin": "nested"}, "tin": "flat",
        "contacts": {"email": "nested@x"}, "email": "flat@x",
    })
    assert p.details.tin == "nested"
    assert p.contacts.email == "nested@x"

def test_language_and_employees():
    p = normalize_company_profile({
        "language": "EN",
        "employees": [{"name": "Aigerim", "position": "CMO"}, "junk"],
    })
    assert p.language == "en"
    assert len(p.employees) == 1 and p.employees[0].id
    assert normalize_company_profile({"language": "de"}).language == "ru"

def test_already_normalized_profile_passes_through():
    p = CompanyProfile(companyName="Ready")
    assert normalize_company_profile(p) is p

def test_scalar_contact_values_become_lists():
    p = normalize_company_profile({"phone": 77071234567, "website": "https://acme.kz"})
    assert p.contacts.phones == ["77071234567"]
    assert p.websites == ["https://acme.kz"]
