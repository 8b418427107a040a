from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "warning")
DEBUG_LOG_FILE = config.get("DEBUG_LOG_FILE", "rotator_debug.log")

# OAuth configuration (hardcoded - not user configurable)
# claude.ai handles consent, platform.claude.com issues the tokens
CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
AUTHORIZE_URL = "https://claude.ai/oauth/authorize"
TOKEN_URL = "https://platform.claude.com/v1/oauth/token"
REDIRECT_URI = "https://platform.claude.com/oauth/code/callback"
# Glob handed to the browser while waiting for the consent redirect
REDIRECT_URL_PATTERN = "**/oauth/code/callback**"
SCOPES = "user:profile user:inference user:sessions:claude_code user:mcp_servers"

# Page opened by the first sign-in bootstrap
SIGN_IN_URL = "https://accounts.google.com"

# Account roster and per-account browser profiles
ACCOUNTS_FILE = config.get_path("ACCOUNTS_FILE", Path("accounts.json"))
PROFILES_DIR = config.get_path("PROFILES_DIR", Path("profiles"))

# Credentials read by the claude CLI; one active identity at a time
CREDENTIALS_FILE = config.get_path("CREDENTIALS_FILE", Path.home() / ".claude" / ".credentials.json")

# Browser configuration
CHROME_PATH = config.get("CHROME_PATH", "")
BROWSER_HEADLESS = config.get("BROWSER_HEADLESS", False)

# Timeouts in seconds
NAVIGATION_TIMEOUT = config.get("NAVIGATION_TIMEOUT", 30.0)
# Per approval-button candidate, not the total consent budget
CONSENT_BUTTON_TIMEOUT = config.get("CONSENT_BUTTON_TIMEOUT", 5.0)
REDIRECT_TIMEOUT = config.get("REDIRECT_TIMEOUT", 60.0)
CALLBACK_SETTLE_DELAY = config.get("CALLBACK_SETTLE_DELAY", 2.0)
TOKEN_EXCHANGE_TIMEOUT = config.get("TOKEN_EXCHANGE_TIMEOUT", 30.0)
