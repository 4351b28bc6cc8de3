import os
from dotenv import load_dotenv

# Load `environment` variables from .env file
load_dotenv()


# --- File Paths ---
LOGS_DIR = os.getenv("POSTFACTO_LOGS_DIR") or "logs"
LOG_FILE = os.getenv("POSTFACTO_LOG_FILE") or ''   # empty: console only


# --- Ledger Configuration ---
DEFAULT_STARTING_BALANCE = float(os.getenv("POSTFACTO_STARTING_BALANCE") or 0.0)

# Candle field used as the execution price for every trade pair
PRICE_FIELDS = ("open", "close")
PRICE_FIELD = os.getenv("POSTFACTO_PRICE_FIELD") or "open"

if PRICE_FIELD not in PRICE_FIELDS:
    raise ValueError(f"POSTFACTO_PRICE_FIELD must be one of {PRICE_FIELDS}, got {PRICE_FIELD!r}")


# --- Statistics Configuration ---
DAYS_PER_YEAR = 365.25
RISK_FREE_RATE = float(os.getenv("POSTFACTO_RISK_FREE_RATE") or 0.02)      # annual, decimal
BENCHMARK_RETURN = float(os.getenv("POSTFACTO_BENCHMARK_RETURN") or 10.0)   # annual, percent

# Stand-in for a benchmark series (typical S&P 500 volatility, percent)
ESTIMATED_MARKET_VOLATILITY = 18.0

KELLY_FRACTION = 0.25          # quarter Kelly
RUIN_DRAWDOWN_LIMIT = 0.20     # drawdown treated as ruin by risk_of_ruin
SQN_CONFIDENCE_MIN_TRADES = 30
