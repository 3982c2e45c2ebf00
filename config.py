import os

from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

APP_NAME = "Kinoteka"
APP_VERSION = "0.1.0"

DEFAULT_DB_PATH = os.path.join(BASE_DIR, "database", "kinoteka.db")
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}")

JWT_SECRET = os.environ.get("JWT_SECRET", "change-me")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", "7"))
TOKEN_COOKIE_NAME = "token"

TMDB_API_KEY = os.environ.get("TMDB_API_KEY", "")
TMDB_LANGUAGE = os.environ.get("TMDB_LANGUAGE", "uk-UA")
TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p"

DEFAULT_LINK_LANGUAGE = os.environ.get("DEFAULT_LINK_LANGUAGE", "uk")
DEFAULT_LINK_QUALITY = "720p"
HOST_SEARCH_TIMEOUT = int(os.environ.get("HOST_SEARCH_TIMEOUT", "10"))
