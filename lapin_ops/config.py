"""
Application configuration management.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass, field


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass
class AppConfig:
    """Application configuration with environment overrides."""

    # Remote business API (spreadsheet-backed web app)
    gas_url: str = field(default_factory=lambda: os.getenv("GAS_WEB_APP_URL", "").strip())
    api_timeout_seconds: float = field(default_factory=lambda: _env_float("API_TIMEOUT_SECONDS", "30"))

    # LINE Login
    line_channel_id: str = field(default_factory=lambda: os.getenv("LINE_LOGIN_CHANNEL_ID", ""))
    line_callback_url: str = field(default_factory=lambda: os.getenv("LINE_LOGIN_CALLBACK_URL", ""))
    line_authorize_url: str = "https://access.line.me/oauth2/v2.1/authorize"
    line_scope: str = "profile openid"

    # Dashboard retry policy
    dashboard_max_attempts: int = field(default_factory=lambda: int(os.getenv("DASHBOARD_MAX_ATTEMPTS", "3")))
    dashboard_backoff_seconds: float = field(default_factory=lambda: _env_float("DASHBOARD_BACKOFF_SECONDS", "1.5"))

    # Geocoding
    geocode_url: str = field(
        default_factory=lambda: os.getenv("GEOCODE_URL", "https://nominatim.openstreetmap.org/search")
    )
    geocode_user_agent: str = field(
        default_factory=lambda: os.getenv("GEOCODE_USER_AGENT", "lapin-ops/1.0 (+geocode)")
    )
    geocode_timeout_seconds: float = 20.0

    # Session persistence
    session_dir: Path = field(default_factory=lambda: Path(os.getenv("SESSION_DIR", "./.sessions")))

    # Environment
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "dev"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Map default centre (Sayama / Iruma area)
    map_center_lat: float = 35.853
    map_center_lng: float = 139.412
    map_zoom: int = 12

    @property
    def is_api_configured(self) -> bool:
        return bool(self.gas_url)

    @property
    def is_prod(self) -> bool:
        return self.app_env.lower() == "prod"


# Global config instance
config = AppConfig()


def configure_logging(level: str = None) -> None:
    """Install a single stream handler on the root logger."""
    level_name = (level or config.log_level).upper()
    root = logging.getLogger()
    if not any(getattr(h, "_lapin_ops", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        handler._lapin_ops = True
        root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))


# Persisted client state keys
SESSION_NAMESPACE = "lapin-auth"
TOKEN_KEY = "auth_token"
OAUTH_STATE_KEY = "line_login_state"

NOT_CONFIGURED_MESSAGE = "GAS_URL未設定"

# Dashboard period tokens
PERIOD_MONTH = "今月"
PERIOD_QUARTER = "今四半期"
PERIOD_YEAR = "今年"
PERIOD_OPTIONS = [PERIOD_MONTH, PERIOD_QUARTER, PERIOD_YEAR]

# Project workflow
STATUS_LABELS = {
    "inquiry": "問い合わせ",
    "estimate": "見積もり",
    "followup_status": "追客",
    "contract": "契約",
    "in_progress": "工事中",
    "completed": "完工",
    "lost": "失注",
}

STATUS_FILTER_OPTIONS = [
    "inquiry",
    "estimate",
    "followup_status",
    "contract",
    "in_progress",
    "completed",
]

STATUS_COLORS = {
    "completed": "#059669",
    "in_progress": "#2563eb",
    "estimate": "#d97706",
    "contract": "#7c3aed",
    "inquiry": "#6b7280",
}

WORK_TYPE_FILTERS = ["外壁塗装", "屋根塗装", "水回り", "内装"]
WORK_TYPES = ["外壁塗装", "屋根塗装", "水回り", "内装リフォーム", "エクステリア", "その他"]
ACQUISITION_ROUTES = ["紹介", "チラシ", "HP", "ポータルサイト", "飛び込み", "その他"]

PROJECT_PAGE_SIZE = 10
PROJECT_FETCH_LIMIT = 500
EXPENSE_FETCH_LIMIT = 200

PHOTO_TYPES = {
    "before": "契約前",
    "inspection": "現調",
    "pre_construction": "施工前",
    "undercoat": "下地",
    "during": "施工中",
    "after": "施工後",
    "completed": "完工",
    "other": "その他",
}

EXPENSE_CATEGORIES = ["材料費", "交通費", "外注費", "消耗品費", "飲食費", "その他"]
DEFAULT_EXPENSE_CATEGORY = "その他"

COST_CATEGORIES = ["材料費", "外注費", "人件費", "諸経費", "その他"]
MEETING_TYPES = ["初回訪問", "現地調査", "見積提出", "契約", "その他"]

# People
ROLE_LABELS = {
    "admin": "社長",
    "manager": "営業マネージャー",
    "sales": "営業",
    "staff": "スタッフ",
    "office": "事務",
}

# Bonus achievement colouring (tri-state supplied by the API)
ACHIEVEMENT_COLORS = {
    "achieved": "#06C755",
    "barely": "#f59e0b",
    "not_achieved": "#ef4444",
}

# Inspections
INSPECTION_TYPE_LABELS = {"1year": "1年点検", "3year": "3年点検"}
INSPECTION_STATUS_LABELS = {"scheduled": "予定", "completed": "完了", "overdue": "期限超過"}

# Thank-you / DM templates
MAIL_TEMPLATES = {
    "thankyou": ("お礼状", "この度はリフォーム工事にご依頼いただき誠にありがとうございました。"),
    "seasonal": ("季節DM", "春の訪れと共に、ご挨拶申し上げます。"),
    "campaign": ("キャンペーン", "春のリフォームキャンペーン実施中です。"),
}
MAIL_TARGET_STATUSES = ["completed", "in_progress", "contract"]
COMPANY_NAME = "株式会社ラパンリフォーム"

# Page access
PAGE_KEYS = [
    "dashboard", "projects", "expense", "followup", "inspection",
    "map", "thankyou", "bonus", "admin", "sp_register",
]
ADMIN_ONLY_PAGES = {"bonus", "admin"}
