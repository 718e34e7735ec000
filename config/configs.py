import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env(key: str, default: any = None, cast_type: type = str):
    value = os.getenv(key)
    if value is None or value == "":
        return default

    if cast_type == bool:
        return value.lower() in ("true", "1", "t", "yes", "on")
    try:
        return cast_type(value)
    except (ValueError, TypeError):
        return default


class AppConfigs:
    def __init__(self):
        self.name = get_env("APP_NAME", "Governance Proposal Submitter")
        self.log_level = get_env("LOG_LEVEL", "INFO")


class GovernanceConfigs:
    """Process-wide defaults for the proposal, overridable per invocation from the CLI."""

    def __init__(self):
        self.proxy_address = get_env("GOV_PROXY_ADDR", "0x3e25247CfF03F99a7D83b28F207112234feE73a6")
        self.tech_comm_threshold = get_env("TECH_COMM_THRESHOLD", 4, int)
        self.referendum_delay = get_env("REFERENDUM_AFTER_BLOCKS", 100, int)


class FetchConfigs:
    def __init__(self):
        self.timeout_seconds = get_env("FETCH_TIMEOUT_SECONDS", 120, int)


class SystemConfigs:
    def __init__(self):
        self.app = AppConfigs()
        self.governance = GovernanceConfigs()
        self.fetch = FetchConfigs()

# Singleton instance
configs = SystemConfigs()
