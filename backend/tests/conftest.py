"""Root conftest — shared test configuration."""

import os

# Ensure tests never inherit a production environment or database URI
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/devevent-test")
