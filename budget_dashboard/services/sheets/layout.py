"""
Budget Worksheet Layout

Static cell addressing for the family budget spreadsheet.

The "Budget" worksheet has one row per category/subcategory and one
column per month (B = January ... M = December). The products worksheet
("Cakes/Biscuits") lists one product per row from row 3, with the name in
column A, price in B, cost in C and monthly quantities in E..P.

CRITICAL: This table mirrors a layout maintained by hand in the sheet.
Nothing checks that they agree - if a row is inserted in the sheet,
update CATEGORY_ROWS.

Keys are matched with accents and case folded away, so
"Santé/Mutuelle" and "sante/mutuelle" land on the same row.
"""

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

# "{category}/{subcategory}" -> row in the Budget worksheet
CATEGORY_ROWS: dict[str, int] = {
    # Maison
    "Maison/Loyers/emprunt": 25,
    "Maison/Électricité/gaz": 26,
    "Maison/Essence": 27,
    "Maison/Eau": 28,
    "Maison/Ménage": 29,
    "Maison/Téléphones portables": 30,
    "Maison/Internet": 31,
    "Maison/Cable/Satellite": 32,
    "Maison/Réparation/entretien": 33,
    "Maison/Équipements": 34,
    "Maison/Maintenance": 35,
    "Maison/Déco": 36,
    "Maison/Autre": 37,

    # Vie Quotidienne
    "Vie Quotidienne/Courses": 41,
    "Vie Quotidienne/Argent de poche": 42,
    "Vie Quotidienne/Habillement": 43,
    "Vie Quotidienne/Sorties": 44,
    "Vie Quotidienne/Coiffeur": 45,
    "Vie Quotidienne/Divers": 46,

    # Enfants
    "Enfants/Habillement/bijoux": 50,
    "Enfants/Frais études": 51,
    "Enfants/Argent de poche": 52,
    "Enfants/Tél/internet": 53,
    "Enfants/Activités": 54,
    "Enfants/Transports": 55,
    "Enfants/Santé": 56,
    "Enfants/Nounou": 57,
    "Enfants/Jeux/loisirs": 58,
    "Enfants/Divers": 59,

    # Transport
    "Transport/Voiture": 63,
    "Transport/Essence/électricité": 64,
    "Transport/Réparations/contrôles": 65,
    "Transport/Transport en commun": 66,
    "Transport/Bus/Taxi": 67,
    "Transport/Divers": 68,

    # Santé
    "Santé/Médecins/dentiste": 72,
    "Santé/Médicaments/soins": 73,
    "Santé/Mutuelle": 74,
    "Santé/Urgences": 75,
    "Santé/Divers": 76,

    # Assurances
    "Assurances/Auto": 80,
    "Assurances/Habitation": 81,
    "Assurances/Assurance vie": 82,
    "Assurances/Assurance scolaire": 83,

    # Dons
    "Dons/Cadeaux divers": 88,
    "Dons/Organisations": 89,
    "Dons/Communauté religieuse": 90,
    "Dons/Autre": 91,

    # Épargne
    "Épargne/Épargne logement": 95,
    "Épargne/Livret": 96,
    "Épargne/Retraite": 97,
    "Épargne/Investissements": 98,
    "Épargne/Projets": 99,
    "Épargne/Divers": 100,

    # Impôts
    "Impôts/Impôt sur le revenu": 104,
    "Impôts/Taxe habitation/foncière": 105,
    "Impôts/Autre": 106,

    # Loisirs
    "Loisirs/Vidéos/DVDs": 111,
    "Loisirs/Musique": 112,
    "Loisirs/Jeux": 113,
    "Loisirs/Locations": 114,
    "Loisirs/Cinéma": 115,
    "Loisirs/Concerts": 116,
    "Loisirs/Livres": 117,
    "Loisirs/Film/Photos": 118,
    "Loisirs/Sports": 119,
    "Loisirs/Sorties": 120,
    "Loisirs/Divers": 121,

    # Animaux
    "Animaux/Nourriture/entretien": 126,
    "Animaux/Véto et soins": 127,
    "Animaux/Divers": 128,

    # Abonnements
    "Abonnements/Journaux/magazines": 133,
    "Abonnements/Club": 134,
    "Abonnements/Abo 1": 135,
    "Abonnements/Abo 2": 136,
    "Abonnements/Divers": 137,

    # Vacances
    "Vacances/Transport": 141,
    "Vacances/Location": 142,
    "Vacances/Repas": 143,
    "Vacances/Location voiture": 144,
    "Vacances/Visites/loisirs": 145,
    "Vacances/Divers": 146,

    # Divers
    "Divers/Frais de banque": 150,
    "Divers/Remboursements prêts": 151,
    "Divers/Cordonnier": 152,
    "Divers/Pressing": 153,
    "Divers/Autre": 154,
}

# Month index (0 = January) -> column in the Budget worksheet
MONTH_COLUMNS = ["B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L", "M"]

# Products worksheet
PRODUCT_FIRST_ROW = 3
PRODUCT_LAST_ROW = 100
PRODUCT_MONTH_COLUMNS = ["E", "F", "G", "H", "I", "J", "K", "L", "M", "N", "O", "P"]

_PLAIN_SHEET_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.split()).casefold()


_ROW_INDEX: dict[str, int] = {_fold(key): row for key, row in CATEGORY_ROWS.items()}


def category_key(category: str, subcategory: Optional[str]) -> str:
    return f"{category}/{subcategory or ''}"


def category_row(category: str, subcategory: Optional[str]) -> Optional[int]:
    """Row of a category/subcategory pair in the Budget worksheet, or None."""
    return _ROW_INDEX.get(_fold(category_key(category, subcategory)))


def category_choices() -> dict[str, list[str]]:
    """Categories and their subcategories, in worksheet order (for forms)."""
    choices: dict[str, list[str]] = {}
    for key in CATEGORY_ROWS:
        category, subcategory = key.split("/", 1)
        choices.setdefault(category, []).append(subcategory)
    return choices


def month_column(month_index: int) -> str:
    if not 0 <= month_index <= 11:
        raise ValueError(f"month_index must be 0-11, got {month_index}")
    return MONTH_COLUMNS[month_index]


def a1_range(sheet_name: str, cells: str) -> str:
    """
    Qualify a range with its worksheet, quoting the name when needed.

    >>> a1_range("Budget", "C28")
    'Budget!C28'
    >>> a1_range("Cakes/Biscuits", "A3:A100")
    "'Cakes/Biscuits'!A3:A100"
    """
    if _PLAIN_SHEET_NAME.match(sheet_name):
        return f"{sheet_name}!{cells}"
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{cells}"


def budget_cell(
    category: str,
    subcategory: Optional[str],
    month_index: int,
    sheet_name: str = "Budget",
) -> Optional[str]:
    """
    Full cell address for a category total, e.g. "Budget!D28".

    Returns None when the pair has no row in the worksheet.
    """
    row = category_row(category, subcategory)
    if row is None:
        return None
    return a1_range(sheet_name, f"{month_column(month_index)}{row}")


def product_names_range(sheet_name: str) -> str:
    return a1_range(sheet_name, f"A{PRODUCT_FIRST_ROW}:A{PRODUCT_LAST_ROW}")


def product_catalog_range(sheet_name: str) -> str:
    """Name, price and cost columns of the products worksheet."""
    return a1_range(sheet_name, f"A{PRODUCT_FIRST_ROW}:C{PRODUCT_LAST_ROW}")


def product_months_range(sheet_name: str, row: int) -> str:
    first, last = PRODUCT_MONTH_COLUMNS[0], PRODUCT_MONTH_COLUMNS[-1]
    return a1_range(sheet_name, f"{first}{row}:{last}{row}")


def parse_french_number(value: Union[str, int, float, Decimal, None]) -> Decimal:
    """
    Parse a number as displayed by a French-locale sheet.

    Spaces (including non-breaking ones) are thousand separators and the
    comma is the decimal mark: "1 500,50" -> Decimal("1500.50").
    Blank or unparseable values give 0.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    clean = re.sub(r"\s", "", value).replace("€", "").replace(",", ".", 1)
    try:
        return Decimal(clean)
    except InvalidOperation:
        return Decimal("0")


__all__ = [
    "CATEGORY_ROWS",
    "MONTH_COLUMNS",
    "PRODUCT_FIRST_ROW",
    "PRODUCT_LAST_ROW",
    "PRODUCT_MONTH_COLUMNS",
    "a1_range",
    "budget_cell",
    "category_choices",
    "category_key",
    "category_row",
    "month_column",
    "parse_french_number",
    "product_catalog_range",
    "product_months_range",
    "product_names_range",
]
