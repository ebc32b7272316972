"""Internal constants shared across the library."""

IEM_BASE_URL = "https://mesonet.agron.iastate.edu"
DAT_BASE_URL = (
    "https://services.dat.noaa.gov/arcgis/rest/services/nws_damageassessmenttoolkit/DamageViewer/FeatureServer"
)
USER_AGENT = "stormreplay/0.1 (+https://github.com/stormreplay/stormreplay)"

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

# ------------------------------------------------------------------
# Warnings / watches / outlooks
# ------------------------------------------------------------------

WARNING_PHENOMENA: frozenset[str] = frozenset({"TO", "SV", "FF"})
WARNING_SIGNIFICANCE = "W"
WATCH_TYPES: frozenset[str] = frozenset({"TOR", "SVR"})

# Day 1 outlook cycles, latest first.
OUTLOOK_CYCLES: tuple[int, ...] = (20, 16, 13, 6, 1)
OUTLOOK_CATEGORY = "CATEGORICAL"
OUTLOOK_THRESHOLDS: frozenset[str] = frozenset({"TSTM", "MRGL", "SLGT", "ENH", "MDT", "HIGH"})

# SPC convective days run 12Z to 12Z.
CONVECTIVE_DAY_OFFSET_MS = 12 * MS_PER_HOUR

# ------------------------------------------------------------------
# Fan-out tunables (defaults for ReplayConfig)
# ------------------------------------------------------------------

MCD_SAMPLE_INTERVAL_S = 30 * 60
MCD_CONCURRENCY = 3
OBS_CONCURRENCY = 5
STATION_RADIUS_KM = 230.0
MAX_STATIONS = 50

DAT_TORNADO_TRACKS_LAYER = 1
DAT_PAGE_SIZE = 2000
