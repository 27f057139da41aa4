"""
EURING age codes and seasonal projection.

Codes count calendar years since hatching. Odd codes from 3 upward are
exact ("hatched N calendar years before"), even codes are open-ended
("hatched more than N calendar years before"), code 2 is a fully grown
bird of unknown hatch year and code 1 a nestling. Each elapsed season
advances a code by two steps; the numeric scheme used here stops at
``AGE_CODE_CEILING``, which every older bird satisfies.
"""

from typing import NamedTuple, Optional
from types import MappingProxyType


class EuringAge(NamedTuple):
    code: int
    description: str
    exact: bool
    floor: int  # smallest code reachable by projecting backwards


EURING_AGE_CODES = MappingProxyType({
    1: EuringAge(1, "pullus: nestling or chick, unable to fly", True, 3),
    2: EuringAge(2, "fully grown: year of hatching unknown", False, 2),
    3: EuringAge(3, "first-year: hatched this calendar year", True, 3),
    4: EuringAge(4, "after first-year: hatched before this calendar year", False, 2),
    5: EuringAge(5, "second-year: hatched last calendar year", True, 3),
    6: EuringAge(6, "after second-year: hatched before last calendar year", False, 2),
    7: EuringAge(7, "third-year: hatched two calendar years before", True, 3),
    8: EuringAge(8, "after third-year: hatched more than two calendar years before", False, 2),
})

PULLUS = 1
FIRST_YEAR = 3
AGE_STEP_PER_SEASON = 2
AGE_CODE_CEILING = 8


def is_known_age(code):
    """True if *code* is a usable anchor in the EURING table."""
    try:
        return int(code) == code and int(code) in EURING_AGE_CODES
    except (TypeError, ValueError):
        return False


def project_age(code: int, seasons: int, ceiling: int = AGE_CODE_CEILING) -> Optional[int]:
    """Project a known age code by a number of elapsed seasons.

    Parameters
    ----------
    code : int
        Anchor EURING code (must be in ``EURING_AGE_CODES``).
    seasons : int
        Seasons between the anchor capture and the target capture.
        Negative values project backwards in time.
    ceiling : int
        Highest code ever produced by a forward projection.

    Returns
    -------
    int or None
        None when a backward projection falls before the bird could be
        aged (e.g. before it hatched).
    """
    code = int(code)
    if seasons == 0:
        return code

    entry = EURING_AGE_CODES[code]
    base = FIRST_YEAR if code == PULLUS else code
    projected = base + AGE_STEP_PER_SEASON * seasons
    if projected < entry.floor:
        return None
    return min(projected, max(ceiling, code))
