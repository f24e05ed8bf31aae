FEATURES_FILENAME = "features.fea"

# cap on the number of messages returned from a single compilation
MAX_DIAGNOSTICS = 100

# name IDs 0-255 are reserved by the OpenType specification; font-specific
# names go from 256 to 32767
LAST_RESERVED_NAME_ID = 255
MAX_NAME_ID = 32767

INSERT_FEATURE_MARKER = r"\s*# Automatic Code.*"

# features whose generated code ends up in GPOS; any other feature tag is
# assumed to target GSUB when placing insertion markers
GPOS_FEATURE_TAGS = frozenset(
    ["kern", "mark", "mkmk", "dist", "curs", "abvm", "blwm", "cpsp", "vkrn"]
)

# loggers whose warnings are reported back as compilation diagnostics
CAPTURED_LOGGERS = ("fontTools", "shaperfont")
