"""
Centralized configuration for the Santo Stefano Quisquina (SSQ) pipeline.

Population constants, date conventions, field-protocol assumptions and
output naming are defined here. Lookup tables (species, EURING age codes)
live in ``ssq_pipeline.formulas``; this module holds runtime parameters.
"""

# ─── POPULATION ──────────────────────────────────────────────────────────
POP_ID = "SSQ"
PRIMARY_DATA_FILE = "SSQ_PrimaryData.xlsx"

# Nest boxes were replaced over the study period without being recorded,
# so every box is listed as functioning from the first season onward.
LOCATION_START_SEASON = 1993
LOCATION_TYPE = "NB"

# ─── DATE CONVENTIONS ────────────────────────────────────────────────────
# Lay and hatch dates are recorded as day numbers where day 1 = 1 March.
SEASON_START_MONTH = 3
SEASON_START_DAY = 1

# BroodID = BreedingSeason_LocationID_LayDay, both parts zero-padded.
LOCATION_ID_WIDTH = 3
LAY_DAY_WIDTH = 3

# ─── CAPTURE-DATE PROXY ──────────────────────────────────────────────────
# No capture dates are recorded. Adults are assigned the lay date of their
# nest. Chicks were only ever handled in the nest, at 12 days old at the
# latest, after roughly 15 days of incubation following clutch completion.
INCUBATION_DAYS = 15
CHICK_RINGING_AGE_DAYS = 12
CHICK_CAPTURE_OFFSET_DAYS = INCUBATION_DAYS + CHICK_RINGING_AGE_DAYS  # 27

# ─── CLUTCH TYPE ─────────────────────────────────────────────────────────
# Maximum gap (days) between consecutive lay dates of one female for the
# later brood to count as a continuation of her breeding sequence.
MAX_RENEST_INTERVAL_DAYS = 30

# Observed clutch class codes in the primary data.
OBSERVED_CLUTCH_CLASSES = {
    1: "first",
    2: "replacement",
    3: "second",
}

# ─── AGE CODES ───────────────────────────────────────────────────────────
# Parent age codes in the primary data → EURING.
# 1 = yearling (hatched last calendar year), 2 = older adult.
PARENT_AGE_TO_EURING = {
    1: 5,
    2: 6,
}
CHICK_EURING_AGE = 1

# ─── INDIVIDUAL SUMMARY ──────────────────────────────────────────────────
CONFLICTED_SPECIES = "CCCCCC"
CONFLICTED_SEX = "C"

# ─── INPUT SHAPE ─────────────────────────────────────────────────────────
MAX_CHICKS_PER_BROOD = 13
CHICK_ID_COLUMNS = [f"Chick{i}Id" for i in range(1, MAX_CHICKS_PER_BROOD + 1)]

REQUIRED_INPUT_COLUMNS = [
    "Year", "Species", "Ld", "Cs", "Hd", "Hs", "Fs",
    "FId", "MId", "FAge", "MAge",
    "NestId", "HabitatOfRinging", "XCoord", "YCoord", "Class",
] + CHICK_ID_COLUMNS

# ─── OUTPUT ──────────────────────────────────────────────────────────────
OUTPUT_TYPES = ("csv", "memory")
DEFAULT_OUTPUT_TYPE = "memory"
DEFAULT_OUTPUT_DIR = "."

OUTPUT_FILES = {
    "Brood_data": f"Brood_data_{POP_ID}.csv",
    "Capture_data": f"Capture_data_{POP_ID}.csv",
    "Individual_data": f"Individual_data_{POP_ID}.csv",
    "Location_data": f"Location_data_{POP_ID}.csv",
}
