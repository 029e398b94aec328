import os

# Must be set before booking.config.settings is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
