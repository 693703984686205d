"""
Single place for server configuration.
Values come from environment variables; defaults suit local development.
World parameters (grid size, item counts, treasure values) are not here: they
are passed per game as a WorldConfig.
"""
import os

# "development" or "production"; selects log level and renderer
ENVIRONMENT = os.environ.get("SNOWHUNT_ENV", "development")

HOST = os.environ.get("SNOWHUNT_HOST", "0.0.0.0")
PORT = int(os.environ.get("SNOWHUNT_PORT", "8000"))

# Comma-separated list of allowed browser origins
_DEFAULT_CORS = "http://localhost:5173,http://localhost:3000,http://localhost:8080"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("SNOWHUNT_CORS_ORIGINS", _DEFAULT_CORS).split(",")
    if origin.strip()
]
