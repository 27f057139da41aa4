"""
Lookup tables and pure classification functions.

config.py retains runtime parameters; this package holds the species and
EURING lookups and the two per-group algorithms (clutch type, age).
"""

from ssq_pipeline.formulas.species import (
    SPECIES_CODES,
    SUPPORTED_SPECIES,
    species_code,
    resolve_species_filter,
)
from ssq_pipeline.formulas.euring import (
    EURING_AGE_CODES,
    AGE_CODE_CEILING,
    is_known_age,
    project_age,
)
from ssq_pipeline.formulas.clutch_type import (
    ClutchType,
    classify_clutch_types,
    calc_clutch_type,
)
from ssq_pipeline.formulas.age import (
    resolve_ages,
    calc_age,
)

__all__ = [
    # species
    "SPECIES_CODES",
    "SUPPORTED_SPECIES",
    "species_code",
    "resolve_species_filter",
    # euring
    "EURING_AGE_CODES",
    "AGE_CODE_CEILING",
    "is_known_age",
    "project_age",
    # clutch type
    "ClutchType",
    "classify_clutch_types",
    "calc_clutch_type",
    # age
    "resolve_ages",
    "calc_age",
]
