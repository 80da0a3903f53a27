from idp_builder.settings.main import build_settings

# Sentinels
MISSING_DOUBLE = -1.0e10
NO_DATA_FLAG = build_settings.quality_flags.no_data
INITIAL_FLAG = "0"

# Reserved lead-variable slots in the per-event arenas
PRESSURE_SLOT = -2
DEPTH_SLOT = -1

# Collation
DISTANCE_TOLERANCE = build_settings.collation.distance_tolerance
TIME_TOLERANCES = build_settings.collation.time_tolerances

# Arena sizing
ARENA_FAST_PATH_SIZE = build_settings.arena.fast_path_size
ARENA_MAX_BYTES = build_settings.arena.max_bytes

# Provenance
INFO_LINK_FORMAT = "lf:infos/{}.html"
AS_PROVIDED_TEXT = "As provided."
MEDIAN_TEXT = (
    "Value obtained as median of data values from above originators. "
    "Quality flag is combination of individual flags (poorest quality)."
)

# Paths
PRODUCT_NAME = build_settings.product_name
INPUT_DIR = build_settings.paths.input_dir
OUTPUT_DIR = build_settings.paths.output_dir
DIAGNOSTICS_DIR = build_settings.paths.diagnostics_dir
