"""
Species lookup for the SSQ population.

Maps the scientific names used in the primary data to the six-letter codes
of the standard format (EURING species number in comments).
"""

from types import MappingProxyType

SPECIES_CODES = MappingProxyType({
    "Parus major": "PARMAJ",          # 14640, great tit
    "Cyanistes caeruleus": "CYACAE",  # 14620, blue tit
})

SUPPORTED_SPECIES = tuple(SPECIES_CODES.values())


def species_code(scientific_name):
    """Return the standard species code for a scientific name, or None."""
    if not isinstance(scientific_name, str):
        return None
    return SPECIES_CODES.get(scientific_name.strip())


def resolve_species_filter(species=None):
    """Validate a requested species subset.

    Parameters
    ----------
    species : iterable of str, optional
        Species codes to keep. None means every supported species.

    Returns
    -------
    list[str]

    Raises
    ------
    ValueError
        If any requested code is not supported by this population.
    """
    if species is None:
        return list(SUPPORTED_SPECIES)
    requested = [s.strip().upper() for s in species if s and s.strip()]
    unsupported = sorted(set(requested) - set(SUPPORTED_SPECIES))
    if unsupported:
        raise ValueError(
            f"Unsupported species code(s) {unsupported}; "
            f"expected a subset of {list(SUPPORTED_SPECIES)}"
        )
    if not requested:
        raise ValueError("Species filter is empty")
    return list(dict.fromkeys(requested))
