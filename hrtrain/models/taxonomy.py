"""
Static company/department taxonomy.

Company names key the department lists; principals' CompanyPermission entries
refer to these names. The core never mutates the mapping.
"""
from typing import Dict, List

from hrtrain.config import load_taxonomy_override

COMPANY_OPTIONS: List[str] = ["神通", "神資", "神耀", "新達", "肇源", "光通信"]

DEPARTMENT_MAPPING: Dict[str, List[str]] = {
    "神資": [
        "070-董事長室", "P00-總經理室", "PA0-財務處", "PC0-稽核室",
        "PG0-資訊服務研發處", "600-數位科技事業群", "700-行政支援中心",
        "C00-應用系統事業群", "G00-創新科技事業群", "K00-智慧交通事業群",
    ],
    "神耀": [
        "Q0A-董事長室", "Q00-總經理室", "QF0-管理處", "Q01-財會部",
        "QA0-智能科技中心", "QB0-智慧聯安事業群", "QC0-AI創新應用研發中心",
    ],
    "新達": [
        "ZA0-董事長室", "Z00-總經理室", "Z10-統合通訊處",
        "Z20-智能影音處", "Z30-電力系統處", "Z70-技術支援處",
    ],
    "神通": ["一般部門"],
    "肇源": ["一般部門"],
    "光通信": ["一般部門"],
}

_override = load_taxonomy_override()
if _override:
    DEPARTMENT_MAPPING = _override
    COMPANY_OPTIONS = list(_override.keys())


def departments_of(company: str) -> List[str]:
    """Ordered department list for a company; empty for unknown companies."""
    return list(DEPARTMENT_MAPPING.get(company, []))


def is_known_company(company: str) -> bool:
    return company in DEPARTMENT_MAPPING
