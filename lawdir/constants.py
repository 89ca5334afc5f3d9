"""
Directory Catalogues
====================

Built-in reference data: practice areas (seeded into the specialisations
table at startup) and Australian states/territories.
"""

from typing import Dict, List, Optional

PRACTICE_AREA_CATEGORIES: List[Dict[str, str]] = [
    {
        "name": "Family Law",
        "slug": "family-law",
        "description": "Legal matters relating to family relationships, divorce, children, and domestic arrangements",
    },
    {
        "name": "Criminal Law",
        "slug": "criminal-law",
        "description": "Legal representation for criminal charges and offences",
    },
    {
        "name": "Property Law",
        "slug": "property-law",
        "description": "Property transactions, conveyancing, and property-related disputes",
    },
    {
        "name": "Wills & Estates",
        "slug": "wills-estates",
        "description": "Estate planning, wills, probate, and succession matters",
    },
    {
        "name": "Employment Law",
        "slug": "employment-law",
        "description": "Workplace disputes, employment contracts, and employee rights",
    },
    {
        "name": "Personal Injury",
        "slug": "personal-injury",
        "description": "Compensation claims for injuries and accidents",
    },
    {
        "name": "Business Law",
        "slug": "business-law",
        "description": "Commercial and corporate legal services for businesses",
    },
    {
        "name": "Immigration Law",
        "slug": "immigration-law",
        "description": "Visa applications, citizenship, and immigration matters",
    },
    {
        "name": "Litigation",
        "slug": "litigation",
        "description": "Court proceedings and dispute resolution",
    },
    {
        "name": "Bankruptcy & Insolvency",
        "slug": "bankruptcy-insolvency",
        "description": "Bankruptcy, insolvency, and debt relief matters",
    },
    {
        "name": "Intellectual Property",
        "slug": "intellectual-property",
        "description": "Protection and enforcement of intellectual property rights",
    },
    {
        "name": "Tax Law",
        "slug": "tax-law",
        "description": "Tax planning, disputes, and compliance",
    },
    {
        "name": "Environmental Law",
        "slug": "environmental-law",
        "description": "Environmental regulation, planning, and resource management",
    },
    {
        "name": "Administrative Law",
        "slug": "administrative-law",
        "description": "Government decisions, tribunals, and administrative matters",
    },
]

# (code, full name, short name)
AUSTRALIAN_STATES = [
    ("nsw", "New South Wales", "NSW"),
    ("vic", "Victoria", "VIC"),
    ("qld", "Queensland", "QLD"),
    ("wa", "Western Australia", "WA"),
    ("sa", "South Australia", "SA"),
    ("tas", "Tasmania", "TAS"),
    ("act", "Australian Capital Territory", "ACT"),
    ("nt", "Northern Territory", "NT"),
]


def normalize_state(value: str) -> Optional[str]:
    """Map a state code, short name or full name to its short name (e.g. 'NSW')."""
    needle = (value or "").strip().lower()
    for code, name, short in AUSTRALIAN_STATES:
        if needle in (code, name.lower(), short.lower()):
            return short
    return None
