"""
Fixed routes, session keys and error codes shared by the auth flow.
"""

# Routes
LOGIN_PATH = "/login"
GOOGLE_AUTH_PATH = "/auth/google"
CALLBACK_PATH = "/auth/google/callback"
LOGOUT_PATH = "/logout"
DASHBOARD_PATH = "/dashboard"
ROOT_PATH = "/"

# Session keys
SESSION_KEY_OAUTH_STATE = "oauth_state"
SESSION_KEY_USER_EMAIL = "user_email"
SESSION_KEY_USER_NAME = "user_name"
SESSION_KEY_USER_PICTURE = "user_picture"
SESSION_KEY_OAUTH_TOKEN = "oauth_token"

# Identity marker stored when no profile scope was granted
API_USER_SENTINEL = "authenticated_api_user"

# Redirect error codes (value of ?error= on the login page)
ERROR_MISSING_STATE = "missing_state"
ERROR_INVALID_STATE = "invalid_state"
ERROR_MISSING_CODE = "missing_code"
ERROR_TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
ERROR_USER_INFO_FAILED = "user_info_failed"
ERROR_SESSION_SAVE_FAILED = "session_save_failed"

# Templates
TEMPLATES_DIR = "templates"
DEFAULT_LOGIN_TEMPLATE = "login.html"
DASHBOARD_TEMPLATE = "dashboard.html"

# Browsers drop cookies larger than this
MAX_COOKIE_BYTES = 4096
