"""Domain records and the pure rules over them (CNPJ roots, prospect classification)."""

from .cnpj import cnpj_root, cnpj_roots, digits_only
from .models import ExtractedData, InspectionList, ProductEntry, Session, User
from .prospect import KnownRootResolver, classify

__all__ = [
    "cnpj_root",
    "cnpj_roots",
    "digits_only",
    "ExtractedData",
    "InspectionList",
    "ProductEntry",
    "Session",
    "User",
    "KnownRootResolver",
    "classify",
]
