"""Configuration settings for easydraft."""

# DXF baseline written by the exporter (AutoCAD R12)
DXF_BASELINE_VERSION = "AC1009"

# Drawing defaults
DEFAULT_LAYER = "0"
DEFAULT_LAYER_COLOR = 7  # White/black depending on background
DEFAULT_LINETYPE = "CONTINUOUS"

# ACI value meaning "use the layer color"
COLOR_BYLAYER = 256

# Geometry comparison tolerance for coordinates and angles
ROUNDTRIP_TOLERANCE = 1e-9

# Ellipses: parameter span counted as a full turn, chords per full turn on R12
# export where ELLIPSE does not exist
FULL_ELLIPSE_TOLERANCE = 1e-3
ELLIPSE_SEGMENTS = 72

# Native document format
NATIVE_FORMAT_NAME = "easydraft"
NATIVE_FORMAT_VERSION = 2
NATIVE_FILE_EXTENSION = ".edj"

# DXF $INSUNITS codes
INSUNITS = {
    0: "unitless",
    1: "in",
    2: "ft",
    4: "mm",
    5: "cm",
    6: "m",
    7: "km",
}
DEFAULT_INSUNITS = 4  # millimeters

# Sentinel at the start of binary DXF files
BINARY_DXF_SENTINEL = b"AutoCAD Binary DXF\r\n\x1a\x00"
