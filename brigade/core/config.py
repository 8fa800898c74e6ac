import os

from dotenv import load_dotenv

# Load .env from the project root
load_dotenv()


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./brigade.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
# Exception text in 500 bodies, for local debugging only.
DEBUG_ERRORS = _env_flag("DEBUG_ERRORS")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and (IS_DEV or IS_TEST):
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Auth (JWT)
JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")
JWT_TEAM_MEMBER_SECRET = os.getenv("JWT_TEAM_MEMBER_SECRET", "") or JWT_ACCESS_SECRET
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))
# Kiosk sessions last one shift.
TEAM_MEMBER_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("TEAM_MEMBER_ACCESS_TOKEN_EXPIRE_MINUTES", "720"))
TEAM_MEMBER_REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("TEAM_MEMBER_REFRESH_TOKEN_EXPIRE_DAYS", "30"))

# Passwords
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
PASSWORD_HASH_TIMEOUT_SECONDS = float(os.getenv("PASSWORD_HASH_TIMEOUT_SECONDS", "5"))
PASSWORD_RESET_EXPIRE_MINUTES = int(os.getenv("PASSWORD_RESET_EXPIRE_MINUTES", "60"))
EMAIL_VERIFICATION_EXPIRE_HOURS = int(os.getenv("EMAIL_VERIFICATION_EXPIRE_HOURS", "24"))

# Brute-force guard
LOGIN_MAX_FAILED_ATTEMPTS = int(os.getenv("LOGIN_MAX_FAILED_ATTEMPTS", "5"))
LOGIN_ATTEMPT_WINDOW_SECONDS = int(os.getenv("LOGIN_ATTEMPT_WINDOW_SECONDS", "900"))

# Team invites
INVITE_SECRET = os.getenv("INVITE_SECRET", "")
INVITE_MAX_AGE_SECONDS = int(os.getenv("INVITE_MAX_AGE_SECONDS", "604800"))

# Tenants
TRIAL_DAYS = int(os.getenv("TRIAL_DAYS", "14"))

# Bootstrap
SUPER_ADMIN_EMAIL = os.getenv("SUPER_ADMIN_EMAIL", "").strip().lower()
SUPER_ADMIN_PASSWORD = os.getenv("SUPER_ADMIN_PASSWORD", "").strip()
SUPER_ADMIN_NAME = os.getenv("SUPER_ADMIN_NAME", "Super Admin").strip() or "Super Admin"
SUPER_ADMIN_BOOTSTRAP = _env_flag("SUPER_ADMIN_BOOTSTRAP", "1")
