"""SQLite table definitions."""

CREATE_TRADES_TABLE = """
CREATE TABLE IF NOT EXISTS trades (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token_address TEXT NOT NULL,
    token_symbol TEXT NOT NULL,
    side TEXT NOT NULL,
    amount_sol REAL NOT NULL,
    amount_token REAL NOT NULL,
    price_usd REAL NOT NULL,
    is_simulated INTEGER NOT NULL DEFAULT 1,
    timestamp TEXT NOT NULL
);
"""

CREATE_POSITIONS_TABLE = """
CREATE TABLE IF NOT EXISTS positions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token_address TEXT NOT NULL,
    token_symbol TEXT NOT NULL,
    entry_price REAL NOT NULL,
    amount_token REAL NOT NULL,
    amount_sol REAL NOT NULL DEFAULT 0,
    market_cap_usd REAL,
    status TEXT NOT NULL DEFAULT 'OPEN',
    pnl_percent REAL NOT NULL DEFAULT 0,
    is_simulated INTEGER NOT NULL DEFAULT 1,
    degraded_fill INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    closed_at TEXT
);
"""

# At most one OPEN position per token; closed rows may repeat.
CREATE_OPEN_POSITION_INDEX = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_positions_open_token
ON positions (token_address) WHERE status = 'OPEN';
"""

CREATE_SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value REAL NOT NULL
);
"""

CREATE_LOGS_TABLE = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    level TEXT NOT NULL,
    message TEXT NOT NULL,
    timestamp TEXT NOT NULL
);
"""

CREATE_OPPORTUNITIES_TABLE = """
CREATE TABLE IF NOT EXISTS opportunities (
    token_address TEXT PRIMARY KEY,
    token_symbol TEXT NOT NULL,
    liquidity_usd REAL NOT NULL DEFAULT 0,
    volume_24h REAL NOT NULL DEFAULT 0,
    price_usd REAL NOT NULL DEFAULT 0,
    safety_score INTEGER NOT NULL DEFAULT 0,
    is_safe INTEGER NOT NULL DEFAULT 0,
    source TEXT DEFAULT '',
    updated_at TEXT NOT NULL
);
"""

ALL_TABLES = [
    CREATE_TRADES_TABLE,
    CREATE_POSITIONS_TABLE,
    CREATE_OPEN_POSITION_INDEX,
    CREATE_SETTINGS_TABLE,
    CREATE_LOGS_TABLE,
    CREATE_OPPORTUNITIES_TABLE,
]

BALANCE_KEY = "virtual_balance"
