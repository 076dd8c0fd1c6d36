import os
import tempfile
from pathlib import Path

_db_dir = Path(tempfile.mkdtemp(prefix="formguard-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_dir / 'formguard.db'}")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CSRF_HASH_ALGORITHM", "sha256")
