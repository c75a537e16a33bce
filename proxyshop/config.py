# proxyshop/config.py
import os


def _normalize_database_url(raw_url: str) -> str:
    """
    Render fornece DATABASE_URL tipo:
      - postgres://...  (precisa trocar para postgresql+psycopg://)
    Além disso, força SSL em produção.
    """
    if not raw_url:
        # SQLite local padrão (arquivo em proxyshop/database/app.db)
        return f"sqlite:///{os.path.join(os.path.dirname(__file__), 'database', 'app.db')}"
    url = raw_url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url[len("postgres://"):]
    elif url.startswith("postgresql://"):
        if not url.startswith("postgresql+"):
            url = "postgresql+psycopg://" + url[len("postgresql://"):]
    if "postgresql+psycopg://" in url and "sslmode=" not in url:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}sslmode=require"
    return url


def _split_csv(value: str) -> list:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def load_config() -> dict:
    """Monta a configuração do app a partir das variáveis de ambiente."""
    return {
        "SECRET_KEY": os.getenv("SECRET_KEY", "proxyshop_secret_key"),
        "SQLALCHEMY_DATABASE_URI": _normalize_database_url(os.getenv("DATABASE_URL", "")),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "CORS_ORIGINS": _split_csv(os.getenv("CORS_ORIGINS", "")),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "RECEIPT_ROOT": os.getenv(
            "RECEIPT_ROOT", os.path.join(os.path.dirname(__file__), "receipts")
        ),
        "MAX_CONTENT_LENGTH": int(os.getenv("MAX_RECEIPT_BYTES", str(10 * 1024 * 1024))),
        # Provisionamento (API do painel)
        "PROVISIONER_URL": os.getenv("PROVISIONER_URL", ""),
        "PROVISIONER_TOKEN": os.getenv("PROVISIONER_TOKEN", ""),
        "PROVISIONER_TIMEOUT": int(os.getenv("PROVISIONER_TIMEOUT", "30")),
        # Bot do Telegram (vazio = bot desligado)
        "TELEGRAM_BOT_TOKEN": os.getenv("TELEGRAM_BOT_TOKEN", ""),
        "NOTIFIER_TIMEOUT": int(os.getenv("NOTIFIER_TIMEOUT", "10")),
        # Valores padrão das configurações da loja (a tabela settings tem prioridade)
        "SHOP_SETTING_DEFAULTS": {
            "shopMinGB": os.getenv("SHOP_MIN_GB", ""),
            "shopMaxGB": os.getenv("SHOP_MAX_GB", ""),
            "shopMinDays": os.getenv("SHOP_MIN_DAYS", ""),
            "shopMaxDays": os.getenv("SHOP_MAX_DAYS", ""),
            "shopPricePerGB": os.getenv("SHOP_PRICE_PER_GB", ""),
        },
    }
