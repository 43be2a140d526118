VERSION = "0.1.0"
SCRIPT_SCHEMA_VERSION = "1.0"
