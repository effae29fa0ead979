from __future__ import annotations
import os
from datetime import timedelta

# Device backend: "snmp" talks to real hardware, "sim" uses the built in simulator
MODE = os.getenv("TSM_MODE", "snmp").lower()

# Get the svc directory (parent of the tsm package where this file lives)
_SVC_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.getenv("TSM_DATA_DIR", "data")

# Explicit device table; when empty the usual locations are searched
CONFIG_FILE = os.getenv("TSM_CONFIG_FILE", "")
CONFIG_NAME = "tsm.toml"
CONFIG_SEARCH_PATHS = [
    os.getcwd(),
    os.path.join(os.path.expanduser("~"), "dev", "tsm"),
    os.path.join(os.path.expanduser("~"), "etc"),
    os.path.join(_SVC_DIR, DATA_DIR),
]

# SNMP v2c session parameters
SNMP_COMMUNITY = os.getenv("TSM_SNMP_COMMUNITY", "public")
SNMP_PORT = int(os.getenv("TSM_SNMP_PORT", "161"))
SNMP_TIMEOUT_S = float(os.getenv("TSM_SNMP_TIMEOUT_S", "2"))
SNMP_RETRIES = int(os.getenv("TSM_SNMP_RETRIES", "0"))

# Model reported by the simulator when answering the model-group OIDs
SIM_MODEL = os.getenv("TSM_SIM_MODEL", "")

# Device queried by the HTTP status surface
DEVICE_HOST = os.getenv("TSM_HOST", "127.0.0.1")
HTTP_HOST = os.getenv("TSM_HTTP_HOST", "0.0.0.0")
HTTP_PORT = int(os.getenv("TSM_HTTP_PORT", "8000"))

# Accepted range for the poll sample interval
MIN_SAMPLE_INTERVAL = timedelta(seconds=1)
MAX_SAMPLE_INTERVAL = timedelta(seconds=60)

# The sampler fetches this many times per sample interval
SAMPLER_DIVISOR = 3
