"""
Column templates of the standard format (protocol v1.1).

Each output table keeps only the template columns, gains the missing
ones as nulls and is reordered to template order.
"""

import pandas as pd

BROOD_COLUMNS = (
    "BroodID", "PopID", "BreedingSeason", "Species", "Plot", "LocationID",
    "FemaleID", "MaleID", "ClutchType_observed", "ClutchType_calculated",
    "LayDate_observed", "LayDate_min", "LayDate_max",
    "ClutchSize_observed", "ClutchSize_min", "ClutchSize_max",
    "HatchDate_observed", "HatchDate_min", "HatchDate_max",
    "BroodSize_observed", "BroodSize_min", "BroodSize_max",
    "FledgeDate_observed", "FledgeDate_min", "FledgeDate_max",
    "NumberFledged_observed", "NumberFledged_min", "NumberFledged_max",
    "AvgEggMass", "NumberEggs", "AvgChickMass", "NumberChicksMass",
    "AvgTarsus", "NumberChicksTarsus", "OriginalTarsusMethod", "ExperimentID",
)

CAPTURE_COLUMNS = (
    "CaptureID", "IndvID", "Species", "Sex_observed", "BreedingSeason",
    "CaptureDate", "CaptureTime", "ObserverID", "LocationID",
    "CaptureAlive", "ReleaseAlive", "CapturePopID", "CapturePlot",
    "ReleasePopID", "ReleasePlot", "Mass", "Tarsus", "OriginalTarsusMethod",
    "WingLength", "Age_observed", "Age_calculated", "ChickAge", "ExperimentID",
)

INDIVIDUAL_COLUMNS = (
    "IndvID", "Species", "PopID", "BroodIDLaid", "BroodIDFledged",
    "RingSeason", "RingAge", "Sex_calculated", "Sex_genetic",
)

LOCATION_COLUMNS = (
    "LocationID", "NestboxID", "LocationType", "PopID",
    "Latitude", "Longitude", "StartSeason", "EndSeason", "HabitatType",
)

TEMPLATES = {
    "Brood_data": BROOD_COLUMNS,
    "Capture_data": CAPTURE_COLUMNS,
    "Individual_data": INDIVIDUAL_COLUMNS,
    "Location_data": LOCATION_COLUMNS,
}


def conform_to_template(df, columns):
    """Select, complete and order *df* to the template *columns*.

    Columns outside the template are dropped; template columns absent
    from *df* are added as nulls.
    """
    out = df.reindex(columns=list(columns))
    return out.reset_index(drop=True)
