import os

# Keep module-level engine creation off the production database during tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
