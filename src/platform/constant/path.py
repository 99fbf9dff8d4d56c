from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

LOG_DIR = BASE_DIR / 'logs'

SCHEMA_SQL_PATH = BASE_DIR / 'src' / 'platform' / 'database' / 'schema.sql'
