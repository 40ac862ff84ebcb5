"""Built-in sample data set.

Shown when the server is unreachable or holds nothing yet, so a fresh install
has a populated dashboard to look at.
"""

from lumetrya.schemas.user_data import UserData

_MONTHS = (
    ("2024-01-31", "January", 1),
    ("2024-02-29", "February", 2),
    ("2024-03-31", "March", 3),
    ("2024-04-30", "April", 4),
    ("2024-05-31", "May", 5),
    ("2024-06-30", "June", 6),
)

def _direction(budget, clicks, leads, deals, sales):
    return {
        "budget": budget, "clicks": clicks, "leads": leads,
        "proposals": 0, "invoices": 0, "deals": deals, "sales": sales,
    }

def _reports():
    out = []
    for date, month, n in _MONTHS:
        rti = _direction(400_000 + 20_000 * n, 3_000 + 150 * n, 60 + 4 * n, 6 + n // 2, 2_400_000 + 180_000 * n)
        printing = _direction(150_000 + 10_000 * n, 1_400 + 90 * n, 25 + 2 * n, 2 + n // 3, 700_000 + 60_000 * n)
        total = {k: rti[k] + printing[k] for k in rti}
        total["proposals"] = 40 + 3 * n
        total["invoices"] = 20 + 2 * n
        out.append({
            "id": f"template-report-{n}",
            "name": f"Report {month} 2024",
            "creationDate": date,
            "metrics": total,
            "directions": {"РТИ": rti, "3D": printing},
        })
    # Newest first, as the store keeps them
    return list(reversed(out))

def build_template() -> UserData:
    """A fresh copy of the template data set."""
    return UserData.model_validate({
        "companyProfile": {
            "companyName": "Demo Company",
            "details": {"legalName": "Demo Company LLP"},
            "contacts": {"phones": ["+7 700 000 00 00"], "email": "info@example.com"},
            "language": "ru",
        },
        "reports": _reports(),
        "proposals": [
            {
                "id": "template-proposal-1", "date": "2024-06-10", "direction": "РТИ",
                "proposalNumber": "KP-001", "company": "Acme", "item": "Rubber seals",
                "amount": 1_200_000, "status": "Sent",
            },
        ],
        "links": [
            {"id": "template-link-1", "url": "https://example.com", "comment": "Company site", "date": "2024-06-01"},
        ],
        "companyStrategy": "",
    })
