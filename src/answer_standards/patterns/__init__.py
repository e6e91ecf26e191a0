"""Pattern catalog and question classification."""

from .catalog import PatternCatalog, PatternCatalogError, default_catalog
from .detector import DetectionResult, PatternCandidate, PatternDetector
from .models import Constraint, ConstraintType, FormatPattern, PatternStructure, Section, SectionFormat

__all__ = [
    "Constraint",
    "ConstraintType",
    "DetectionResult",
    "FormatPattern",
    "PatternCandidate",
    "PatternCatalog",
    "PatternCatalogError",
    "PatternDetector",
    "PatternStructure",
    "Section",
    "SectionFormat",
    "default_catalog",
]
