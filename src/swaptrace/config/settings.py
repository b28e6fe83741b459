from decimal import Decimal
import os
from dotenv import load_dotenv
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def _env_opt_int(name: str):
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else None


# ---- Solana RPC ----
SOLANA_RPC_URL = os.environ.get("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
SOLANA_RPC_TIMEOUT_SEC = _env_int("SOLANA_RPC_TIMEOUT_SEC", 25)
SOLANA_RPC_MAX_RETRIES = _env_int("SOLANA_RPC_MAX_RETRIES", 3)
SOLANA_RPC_REQUESTS_PER_SEC = float(os.environ.get("SOLANA_RPC_REQUESTS_PER_SEC", "5"))
SOLANA_RPC_BATCH_SIZE = _env_int("SOLANA_RPC_BATCH_SIZE", 50)
SOLANA_SIGNATURE_PAGE_SIZE = _env_int("SOLANA_SIGNATURE_PAGE_SIZE", 100)
SOLANA_COMMITMENT = os.environ.get("SOLANA_COMMITMENT", "confirmed")

# ---- Binance (SOL/USD candles) ----
BINANCE_BASE_URL = os.environ.get("BINANCE_BASE_URL", "https://api.binance.com")
BINANCE_SYMBOL = "SOLUSDT"
BINANCE_INTERVAL = "1m"
BINANCE_LIMIT_PER_CALL = 1000
BINANCE_TIMEOUT_SEC = 30
BINANCE_MAX_RETRIES = 5
BINANCE_REQUESTS_PER_SEC = 5.0

# ----- Graph builder -----

# residual native deltas at or below this are not reconciled
RESIDUAL_DUST_LAMPORTS = _env_int("RESIDUAL_DUST_LAMPORTS", 500)

# ----- Edge tagger (policy, not derived truth) -----
DUST_MIN_NATIVE_LAMPORTS = _env_int("DUST_MIN_NATIVE_LAMPORTS", 100_000)
DUST_REL_PCT = Decimal(os.environ.get("DUST_REL_PCT", "0.005"))
FEE_CLUSTER_WINDOW = _env_int("FEE_CLUSTER_WINDOW", 30)
FEE_CLUSTER_TOLERANCE_LAMPORTS = _env_int("FEE_CLUSTER_TOLERANCE_LAMPORTS", 10)
FEE_CLUSTER_MIN_SIZE = _env_int("FEE_CLUSTER_MIN_SIZE", 2)
UNCHECKED_WINDOW = _env_int("UNCHECKED_WINDOW", 60)
UNCHECKED_MIN_CHECKED_LAMPORTS = _env_int("UNCHECKED_MIN_CHECKED_LAMPORTS", 300_000)
TIP_MAX_LAMPORTS = _env_int("TIP_MAX_LAMPORTS", 2_000_000)
FEE_MAX_LAMPORTS = _env_int("FEE_MAX_LAMPORTS", 10_000_000)
INFLOW_CLUSTER_WINDOW = _env_int("INFLOW_CLUSTER_WINDOW", 120)
SINK_MAX_PCT = Decimal(os.environ.get("SINK_MAX_PCT", "0.02"))

# ----- Strategy windows (in seq units) -----
WINDOW_OUT_TO_SOL_IN = _env_int("WINDOW_OUT_TO_SOL_IN", 120)
WINDOW_HUB_TO_USER_IN = _env_int("WINDOW_HUB_TO_USER_IN", 120)
WINDOW_TOTAL_FROM_OUT = _env_int("WINDOW_TOTAL_FROM_OUT", 400)
WINDOW_SOL_AFTER_IN = _env_int("WINDOW_SOL_AFTER_IN", 50)
WINDOW_AROUND_IN = _env_opt_int("WINDOW_AROUND_IN")
MIN_LAMPORTS_TO_SUM = _env_int("MIN_LAMPORTS_TO_SUM", 50_000)
TRANSFER_CLUSTER_WINDOW = _env_int("TRANSFER_CLUSTER_WINDOW", 40)
MAX_PASSES = _env_int("MAX_PASSES", 6)

# ----- Fee attacher -----
FEE_ATTACH_WINDOW = _env_int("FEE_ATTACH_WINDOW", 200)

# ----- Worker pool -----
WORKER_POOL_SIZE = _env_int("WORKER_POOL_SIZE", os.cpu_count() or 1)

# ----- Logging -----
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
