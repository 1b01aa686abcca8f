import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "domain-mirror-proxy")
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()

# Outbound fetch bound, in seconds
PROXY_TIMEOUT = float(os.getenv("PROXY_TIMEOUT", "30"))
DISCONNECT_POLL_INTERVAL = float(os.getenv("DISCONNECT_POLL_INTERVAL", "0.5"))

# Optional JSON file {"real.host": "proxy-prefix.", ...} replacing the built-in table
DOMAIN_MAPPINGS_FILE = os.getenv("DOMAIN_MAPPINGS_FILE", "")


def _parse_list(raw: str, lower: bool = False) -> list[str]:
    items = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        items.append(entry.lower() if lower else entry)
    return items


# Header-name prefixes injected by the hosting platform, never forwarded upstream
PLATFORM_HEADER_PREFIXES = _parse_list(
    os.getenv("PLATFORM_HEADER_PREFIXES", "x-nf-"), lower=True
)

POLICY_REDIRECT_URL = os.getenv("POLICY_REDIRECT_URL", "https://www.gov.cn")
POLICY_REDIRECT_PATHS = _parse_list(
    os.getenv("POLICY_REDIRECT_PATHS", "/,/login,/signup,/copilot")
)

METRICS_PATH = os.getenv("METRICS_PATH", "/_mirror/metrics")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
