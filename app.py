import functools
import math
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import click
import jwt
import requests
from flask import Flask, g, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, func, or_
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from werkzeug.security import check_password_hash, generate_password_hash

import config
import tmdb_client
from player import normalize_ad_type, plan_ad_breaks
from video_hosts import (
    identify_video_host,
    parse_video_url,
    resolve_playback,
    search_video_links,
    validate_video_url,
)


app = Flask(__name__)
app.config["SQLALCHEMY_DATABASE_URI"] = config.DATABASE_URL
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

db = SQLAlchemy(app)

MOVIE_TYPES = ("MOVIE", "SERIES", "ANIMATED_MOVIE", "ANIMATED_SERIES", "COLLECTION")
SERIES_TYPES = {"SERIES", "ANIMATED_SERIES"}
TYPE_FILTERS = {
    "movie": "MOVIE",
    "series": "SERIES",
    "animated-movie": "ANIMATED_MOVIE",
    "animated-series": "ANIMATED_SERIES",
    "collection": "COLLECTION",
}
PASSTHROUGH_SOURCES = {"DIRECT", "PARSED"}

CATALOG_GENRES = (
    "Бойовик",
    "Комедія",
    "Драма",
    "Жахи",
    "Фантастика",
    "Трилер",
    "Романтика",
    "Детектив",
    "Пригоди",
    "Анімація",
)

MAX_PAGE_SIZE = 100
IMPORT_LIST_TYPES = {"popular", "movies", "series", "animated-movies", "animated-series"}


def _parse_list_field(raw_value) -> list[str]:
    if not raw_value:
        return []
    if isinstance(raw_value, (list, tuple)):
        items = [str(item).strip() for item in raw_value]
    else:
        items = [part.strip() for part in str(raw_value).split(",")]
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


def _serialize_list_field(values: list[str]) -> Optional[str]:
    cleaned = _parse_list_field(values)
    return ", ".join(cleaned) if cleaned else None


def _normalize_genre_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    stripped = str(name).strip()
    return stripped or None


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


movie_genres = db.Table(
    "movie_genres",
    db.Column("movie_id", db.Integer, db.ForeignKey("movies.id"), primary_key=True),
    db.Column("genre_id", db.Integer, db.ForeignKey("genres.id"), primary_key=True),
)


class Genre(db.Model):
    __tablename__ = "genres"

    id = db.Column(db.Integer, primary_key=True)
    tmdb_id = db.Column(db.Integer, unique=True)
    name = db.Column(db.String(120), unique=True, nullable=False)

    movies = db.relationship(
        "Movie",
        secondary=movie_genres,
        back_populates="genres",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tmdb_id": self.tmdb_id,
            "name": self.name,
        }


class Movie(db.Model):
    __tablename__ = "movies"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    title_original = db.Column(db.String(255))
    description = db.Column(db.Text, nullable=False, default="")
    description_short = db.Column(db.String(500))
    poster = db.Column(db.String(500))
    backdrop = db.Column(db.String(500))
    release_date = db.Column(db.String(32))
    countries = db.Column(db.Text)
    rating = db.Column(db.Float, nullable=False, default=0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.Integer)
    type = db.Column(db.String(32), nullable=False, default="MOVIE")
    tmdb_id = db.Column(db.Integer, unique=True)
    imdb_id = db.Column(db.String(32))
    views = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    genres = db.relationship(
        "Genre",
        secondary=movie_genres,
        back_populates="movies",
        lazy="selectin",
    )
    video_links = db.relationship(
        "VideoLink",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="VideoLink.id",
    )
    episodes = db.relationship(
        "Episode",
        back_populates="movie",
        cascade="all, delete-orphan",
        order_by="[Episode.season_number, Episode.episode_number]",
    )

    def to_dict(
        self,
        *,
        include_links: bool = False,
        include_episodes: bool = False,
        active_only: bool = False,
    ) -> dict:
        payload = {
            "id": self.id,
            "title": self.title,
            "title_original": self.title_original,
            "description": self.description,
            "description_short": self.description_short,
            "poster": self.poster,
            "backdrop": self.backdrop,
            "release_date": self.release_date,
            "genres": [genre.name for genre in self.genres if genre.name],
            "countries": _parse_list_field(self.countries),
            "rating": self.rating,
            "rating_count": self.rating_count,
            "duration": self.duration,
            "type": self.type,
            "tmdb_id": self.tmdb_id,
            "imdb_id": self.imdb_id,
            "views": self.views,
            "is_active": bool(self.is_active),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
        if include_links:
            payload["video_links"] = [
                link.to_dict()
                for link in self.video_links
                if link.is_active or not active_only
            ]
        if include_episodes:
            payload["episodes"] = [
                episode.to_dict(active_only=active_only) for episode in self.episodes
            ]
        return payload


class Episode(db.Model):
    __tablename__ = "episodes"

    id = db.Column(db.Integer, primary_key=True)
    movie_id = db.Column(db.Integer, db.ForeignKey("movies.id"), nullable=False)
    season_number = db.Column(db.Integer, nullable=False)
    episode_number = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    duration = db.Column(db.Integer)
    thumbnail = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    movie = db.relationship("Movie", back_populates="episodes")
    video_links = db.relationship(
        "VideoLink",
        back_populates="episode",
        cascade="all, delete-orphan",
        order_by="VideoLink.id",
    )

    __table_args__ = (
        db.UniqueConstraint(
            "movie_id", "season_number", "episode_number", name="uq_movie_episode"
        ),
    )

    def to_dict(self, *, active_only: bool = False) -> dict:
        return {
            "id": self.id,
            "movie_id": self.movie_id,
            "season_number": self.season_number,
            "episode_number": self.episode_number,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "thumbnail": self.thumbnail,
            "video_links": [
                link.to_dict()
                for link in self.video_links
                if link.is_active or not active_only
            ],
        }


class VideoLink(db.Model):
    __tablename__ = "video_links"

    id = db.Column(db.Integer, primary_key=True)
    movie_id = db.Column(db.Integer, db.ForeignKey("movies.id"))
    episode_id = db.Column(db.Integer, db.ForeignKey("episodes.id"))
    url = db.Column(db.String(1000), nullable=False)
    quality = db.Column(db.String(32), nullable=False, default=config.DEFAULT_LINK_QUALITY)
    source = db.Column(db.String(16), nullable=False, default="EMBED")
    language = db.Column(db.String(16), nullable=False, default=config.DEFAULT_LINK_LANGUAGE)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    movie = db.relationship("Movie", back_populates="video_links")
    episode = db.relationship("Episode", back_populates="video_links")

    def to_dict(self) -> dict:
        host_key, host_name = identify_video_host(self.url)
        return {
            "id": self.id,
            "movie_id": self.movie_id,
            "episode_id": self.episode_id,
            "url": self.url,
            "quality": self.quality,
            "source": self.source,
            "language": self.language,
            "is_active": bool(self.is_active),
            "host_key": host_key,
            "host_display_name": host_name,
        }


class AdConfig(db.Model):
    __tablename__ = "ad_configs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    content_url = db.Column(db.String(1000))
    click_url = db.Column(db.String(1000))
    position = db.Column(db.Integer)
    duration = db.Column(db.Integer)
    priority = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "content_url": self.content_url,
            "click_url": self.click_url,
            "position": self.position,
            "duration": self.duration,
            "priority": self.priority,
            "is_active": bool(self.is_active),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Admin(db.Model):
    __tablename__ = "admins"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="ADMIN")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }


MOVIE_CREATED_AT_INDEX = db.Index("ix_movies_created_at", Movie.created_at)
MOVIE_RATING_INDEX = db.Index("ix_movies_rating", Movie.rating)
MOVIE_ACTIVE_TYPE_INDEX = db.Index("ix_movies_is_active_type", Movie.is_active, Movie.type)
EPISODE_MOVIE_INDEX = db.Index("ix_episodes_movie_id", Episode.movie_id)
VIDEO_LINK_MOVIE_INDEX = db.Index("ix_video_links_movie_id", VideoLink.movie_id)
VIDEO_LINK_EPISODE_INDEX = db.Index("ix_video_links_episode_id", VideoLink.episode_id)
AD_CONFIG_TYPE_INDEX = db.Index(
    "ix_ad_configs_type_is_active", AdConfig.type, AdConfig.is_active
)

DATABASE_INDEXES = (
    MOVIE_CREATED_AT_INDEX,
    MOVIE_RATING_INDEX,
    MOVIE_ACTIVE_TYPE_INDEX,
    EPISODE_MOVIE_INDEX,
    VIDEO_LINK_MOVIE_INDEX,
    VIDEO_LINK_EPISODE_INDEX,
    AD_CONFIG_TYPE_INDEX,
)

SORT_COLUMNS = {
    "created_at": Movie.created_at,
    "updated_at": Movie.updated_at,
    "release_date": Movie.release_date,
    "rating": Movie.rating,
    "views": Movie.views,
    "title": Movie.title,
}
SORT_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "releaseDate": "release_date",
}


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite lower() only folds ASCII.
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("unicode_lower", 1, _unicode_lower)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _lower(expression):
    if db.engine.dialect.name == "sqlite":
        return func.unicode_lower(expression)
    return func.lower(expression)


def ensure_database() -> None:
    """Create the database schema when the app starts."""
    with app.app_context():
        db_uri = app.config["SQLALCHEMY_DATABASE_URI"]
        url = make_url(db_uri)
        if url.drivername == "sqlite" and url.database and url.database != ":memory:":
            db_path = url.database
            if not os.path.isabs(db_path):
                db_path = os.path.join(config.BASE_DIR, db_path)
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
        db.create_all()
        ensure_database_indexes()


def ensure_database_indexes() -> None:
    engine = db.engine
    for index in DATABASE_INDEXES:
        try:
            index.create(bind=engine, checkfirst=True)
        except OperationalError as exc:
            message = str(exc).lower()
            if "already exists" in message:
                app.logger.debug("Skipping creation of existing index %s", index.name)
                continue
            raise


def _error(message: str, status_code: int, details: Optional[str] = None, **extra):
    payload = {"error": message}
    if details:
        payload["details"] = details
    payload.update(extra)
    return jsonify(payload), status_code


def _json_object() -> Optional[dict]:
    """Return the JSON body as a dict, or None when it is not an object."""

    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _string_field(data: dict, name: str) -> str:
    value = data.get(name)
    return value.strip() if isinstance(value, str) else ""


@app.errorhandler(404)
def not_found(error):
    return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(405)
def method_not_allowed(error):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(500)
def internal_error(error):
    return jsonify({"error": "Internal server error"}), 500


# Auth


def generate_token(payload: dict) -> str:
    claims = dict(payload)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(days=config.JWT_EXPIRES_DAYS)
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def get_token_from_request() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(config.TOKEN_COOKIE_NAME) or None


def authenticate_admin() -> Tuple[Optional[Admin], Optional[str], int]:
    token = get_token_from_request()
    if not token:
        return None, "Unauthorized", 401

    decoded = verify_token(token)
    if not decoded or not decoded.get("id"):
        return None, "Invalid token", 401

    try:
        admin = db.session.get(Admin, int(decoded["id"]))
    except (TypeError, ValueError):
        return None, "Invalid token", 401
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Admin lookup failed: %s", exc)
        return None, "Authentication failed", 401

    if admin is None or not admin.is_active:
        return None, "Admin not found or inactive", 401
    return admin, None, 200


def require_auth(view):
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        admin, error, status_code = authenticate_admin()
        if error:
            return jsonify({"error": error}), status_code
        g.admin = admin
        return view(*args, **kwargs)

    return wrapper


def create_admin(username: str, email: str, password: str, role: str = "ADMIN") -> Admin:
    admin = Admin(
        username=username,
        email=email,
        password=generate_password_hash(password),
        role=role,
    )
    db.session.add(admin)
    db.session.commit()
    return admin


@app.cli.command("create-admin")
@click.argument("username", default="admin")
@click.argument("email", default="admin@example.com")
@click.argument("password", default="admin123")
def create_admin_command(username: str, email: str, password: str) -> None:
    """Create an administrator account unless one with the same name exists."""
    existing = Admin.query.filter(
        or_(Admin.username == username, Admin.email == email)
    ).first()
    if existing:
        click.echo("Admin already exists")
        return

    create_admin(username, email, password)
    click.echo("Admin created successfully:")
    click.echo(f"Username: {username}")
    click.echo(f"Email: {email}")


# Request parsing


def _parse_int(value, name: str, *, default: Optional[int] = None, minimum: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer") from None
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{name} must be at least {minimum}")
    return parsed


def _parse_float(value, name: str, *, minimum: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number") from None
    if math.isnan(parsed) or math.isinf(parsed):
        raise ValueError(f"{name} must be a number")
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{name} must be at least {minimum:g}")
    return parsed


def _parse_bool(value, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "on", "yes"}


def _parse_release_date(value) -> Optional[str]:
    if value is None or value == "":
        return None
    raw = str(value).strip()
    try:
        return datetime.strptime(raw[:10], "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValueError("release_date must use the YYYY-MM-DD format") from None


def _normalize_movie_type(value) -> str:
    normalized = str(value).strip().upper().replace("-", "_")
    if normalized not in MOVIE_TYPES:
        raise ValueError(f"type must be one of {', '.join(MOVIE_TYPES)}")
    return normalized


def _escape_search_query(raw_query: str) -> str:
    """Escape SQL wildcard characters in user provided search strings."""

    return (
        raw_query.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
        .strip()
    )


def _search_filter(search: str):
    like_pattern = f"%{_escape_search_query(search).lower()}%"
    return or_(
        _lower(Movie.title).like(like_pattern, escape="\\"),
        _lower(Movie.description).like(like_pattern, escape="\\"),
    )


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


@dataclass
class CatalogFilters:
    """Query parameters accepted by the catalog listing."""

    page: int = 1
    limit: int = 20
    type: Optional[str] = None
    genre: Optional[str] = None
    search: Optional[str] = None
    sort: str = "-created_at"

    @classmethod
    def from_args(cls, args, default_limit: int = 20) -> "CatalogFilters":
        page = _parse_int(args.get("page"), "page", default=1, minimum=1)
        limit = _parse_int(args.get("limit"), "limit", default=default_limit, minimum=1)
        limit = min(limit, MAX_PAGE_SIZE)

        sort = (args.get("sort") or "-created_at").strip()
        field = sort.lstrip("-")
        field = SORT_ALIASES.get(field, field)
        if field not in SORT_COLUMNS:
            raise ValueError(f"sort must be one of {', '.join(SORT_COLUMNS)}")
        sort = f"-{field}" if sort.startswith("-") else field

        return cls(
            page=page,
            limit=limit,
            type=TYPE_FILTERS.get((args.get("type") or "").strip().lower()),
            genre=(args.get("genre") or "").strip() or None,
            search=(args.get("search") or "").strip() or None,
            sort=sort,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def order_by(self):
        column = SORT_COLUMNS[self.sort.lstrip("-")]
        if self.sort.startswith("-"):
            return column.desc().nullslast()
        return column.asc().nullslast()


# Catalog writes


def _find_or_create_genre(name: str, tmdb_id: Optional[int] = None) -> Genre:
    genre: Optional[Genre] = None
    if tmdb_id is not None:
        genre = Genre.query.filter_by(tmdb_id=tmdb_id).first()
    if genre is None:
        genre = Genre.query.filter(_lower(Genre.name) == name.lower()).first()
    if genre is None:
        genre = Genre(tmdb_id=tmdb_id, name=name)
        db.session.add(genre)
    elif tmdb_id is not None and genre.tmdb_id is None:
        genre.tmdb_id = tmdb_id
    return genre


def _set_movie_genres(movie: Movie, entries) -> None:
    if isinstance(entries, str):
        entries = _parse_list_field(entries)
    if not isinstance(entries, (list, tuple)):
        raise ValueError("genres must be a list")

    genres: list[Genre] = []
    seen: set[str] = set()
    for entry in entries:
        tmdb_id: Optional[int] = None
        if isinstance(entry, dict):
            name = _normalize_genre_name(entry.get("name"))
            try:
                tmdb_id = int(entry["id"]) if entry.get("id") is not None else None
            except (TypeError, ValueError):
                tmdb_id = None
        else:
            name = _normalize_genre_name(entry)
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        genres.append(_find_or_create_genre(name, tmdb_id))
    movie.genres = genres


def _apply_movie_payload(movie: Movie, data: dict, *, creating: bool) -> None:
    """Copy the fields present in ``data`` onto ``movie``, validating each one."""

    if creating or "title" in data:
        title = _string_field(data, "title")
        if not title:
            raise ValueError("title is required")
        movie.title = title

    for field in ("title_original", "description_short", "poster", "backdrop", "imdb_id"):
        if field in data:
            value = data.get(field)
            setattr(movie, field, str(value).strip() if value not in (None, "") else None)

    if "description" in data or creating:
        movie.description = str(data.get("description") or "")

    if "release_date" in data or creating:
        movie.release_date = _parse_release_date(data.get("release_date"))
        if creating and movie.release_date is None:
            movie.release_date = datetime.utcnow().date().isoformat()

    if "genres" in data:
        _set_movie_genres(movie, data.get("genres") or [])
    if "countries" in data:
        movie.countries = _serialize_list_field(_parse_list_field(data.get("countries")))

    if "rating" in data or creating:
        movie.rating = _parse_float(data.get("rating"), "rating", minimum=0) or 0
    if "rating_count" in data:
        movie.rating_count = _parse_int(data.get("rating_count"), "rating_count", default=0, minimum=0)
    if "duration" in data:
        movie.duration = _parse_int(data.get("duration"), "duration", minimum=0)
    if "tmdb_id" in data:
        movie.tmdb_id = _parse_int(data.get("tmdb_id"), "tmdb_id", minimum=1)

    if data.get("type"):
        movie.type = _normalize_movie_type(data["type"])
    elif creating:
        movie.type = "MOVIE"

    if "is_active" in data:
        movie.is_active = _parse_bool(data.get("is_active"))


def _build_video_links(raw_links) -> List[VideoLink]:
    """Validate and classify submitted links; invalid entries are dropped."""

    if raw_links is None:
        return []
    if isinstance(raw_links, str):
        raw_links = [line.strip() for line in raw_links.splitlines() if line.strip()]
    if not isinstance(raw_links, (list, tuple)):
        raise ValueError("video_links must be a list")

    links: List[VideoLink] = []
    for entry in raw_links:
        item = entry if isinstance(entry, dict) else {"url": entry}
        url = item.get("url")
        if not validate_video_url(url):
            app.logger.info("Dropping invalid video link %r", url)
            continue
        parsed = parse_video_url(url)
        if parsed is None:
            continue
        links.append(
            VideoLink(
                url=parsed.url,
                quality=(item.get("quality") or parsed.quality or config.DEFAULT_LINK_QUALITY),
                source=parsed.source.upper(),
                language=item.get("language") or config.DEFAULT_LINK_LANGUAGE,
                is_active=_parse_bool(item.get("is_active")),
            )
        )
    return links


def _build_episodes(raw_episodes) -> List[Episode]:
    if not isinstance(raw_episodes, (list, tuple)):
        raise ValueError("episodes must be a list")

    episodes: List[Episode] = []
    seen: set[tuple[int, int]] = set()
    for entry in raw_episodes:
        if not isinstance(entry, dict):
            raise ValueError("each episode must be an object")
        season_number = _parse_int(entry.get("season_number"), "season_number", minimum=0)
        episode_number = _parse_int(entry.get("episode_number"), "episode_number", minimum=0)
        if season_number is None or episode_number is None:
            raise ValueError("season_number and episode_number are required for episodes")
        key = (season_number, episode_number)
        if key in seen:
            raise ValueError(f"Duplicate episode S{season_number:02d}E{episode_number:02d}")
        seen.add(key)

        episode = Episode(
            season_number=season_number,
            episode_number=episode_number,
            title=_string_field(entry, "title") or f"Episode {episode_number}",
            description=entry.get("description") or None,
            duration=_parse_int(entry.get("duration"), "duration", minimum=0),
            thumbnail=entry.get("thumbnail") or None,
        )
        episode.video_links = _build_video_links(entry.get("video_links"))
        episodes.append(episode)
    return episodes


def _movie_query_with_relations():
    return Movie.query.options(
        selectinload(Movie.genres),
        selectinload(Movie.video_links),
        selectinload(Movie.episodes).selectinload(Episode.video_links),
    )


def _resolve_link_payload(link: VideoLink) -> dict:
    payload = link.to_dict()
    if link.source not in PASSTHROUGH_SOURCES:
        parsed = parse_video_url(link.url)
        if parsed is not None:
            payload["source"] = parsed.source.upper()
            payload["url"] = parsed.url
            payload["quality"] = link.quality or parsed.quality
    payload["playback"] = resolve_playback(payload["url"])
    return payload


# Public API


@app.route("/api/health")
def health_check():
    return jsonify({"status": "ok", "name": config.APP_NAME, "version": config.APP_VERSION})


@app.route("/api/movies", methods=["GET"])
def api_movies():
    try:
        filters = CatalogFilters.from_args(request.args)
    except ValueError as exc:
        return _error("Invalid query parameters", 400, str(exc))

    query = Movie.query.filter(Movie.is_active.is_(True))
    if filters.type:
        query = query.filter(Movie.type == filters.type)
    if filters.genre:
        query = query.filter(
            Movie.genres.any(_lower(Genre.name) == filters.genre.lower())
        )
    if filters.search:
        query = query.filter(_search_filter(filters.search))

    try:
        total = query.count()
        movies = (
            query.order_by(filters.order_by(), Movie.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Movie listing failed: %s", exc)
        return _error("Failed to fetch movies", 500, str(exc))

    return jsonify(
        {
            "movies": [movie.to_dict() for movie in movies],
            "pagination": _pagination(filters.page, filters.limit, total),
        }
    )


@app.route("/api/movies", methods=["POST"])
@require_auth
def api_create_movie():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    movie = Movie()
    try:
        _apply_movie_payload(movie, data, creating=True)
        db.session.add(movie)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid movie data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Movie creation failed: %s", exc)
        return _error("Failed to create movie", 500, str(exc))
    return jsonify({"movie": movie.to_dict()}), 201


@app.route("/api/movies/<int:movie_id>", methods=["GET"])
def api_movie_detail(movie_id: int):
    movie = db.session.get(Movie, movie_id)
    if movie is None or not movie.is_active:
        return _error("Movie not found", 404)

    try:
        Movie.query.filter_by(id=movie_id).update({Movie.views: Movie.views + 1})
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("View counter update failed for movie %s: %s", movie_id, exc)
        return _error("Failed to fetch movie", 500, str(exc))

    movie = _movie_query_with_relations().filter(Movie.id == movie_id).first()
    return jsonify(
        {
            "movie": movie.to_dict(
                include_links=True, include_episodes=True, active_only=True
            )
        }
    )


@app.route("/api/movies/<int:movie_id>", methods=["PUT"])
@require_auth
def api_update_movie(movie_id: int):
    movie = db.session.get(Movie, movie_id)
    if movie is None:
        return _error("Movie not found", 404)

    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    try:
        _apply_movie_payload(movie, data, creating=False)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid movie data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Movie update failed for %s: %s", movie_id, exc)
        return _error("Failed to update movie", 500, str(exc))
    return jsonify({"movie": movie.to_dict()})


@app.route("/api/movies/<int:movie_id>", methods=["DELETE"])
@require_auth
def api_delete_movie(movie_id: int):
    movie = db.session.get(Movie, movie_id)
    if movie is None:
        return _error("Movie not found", 404)

    try:
        movie.is_active = False
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to delete movie", 500, str(exc))
    return jsonify({"message": "Movie deleted successfully"})


@app.route("/api/movies/<int:movie_id>/video")
def api_movie_video(movie_id: int):
    movie = _movie_query_with_relations().filter(Movie.id == movie_id).first()
    if movie is None or not movie.is_active:
        return _error("Movie not found", 404)

    raw_season = request.args.get("season_number")
    raw_episode = request.args.get("episode_number")

    links: List[VideoLink] = []
    if movie.type in SERIES_TYPES and raw_season and raw_episode:
        try:
            season_number = _parse_int(raw_season, "season_number")
            episode_number = _parse_int(raw_episode, "episode_number")
        except ValueError as exc:
            return _error("Invalid episode reference", 400, str(exc))
        episode = next(
            (
                item
                for item in movie.episodes
                if item.season_number == season_number
                and item.episode_number == episode_number
            ),
            None,
        )
        if episode is not None:
            links = [link for link in episode.video_links if link.is_active]
    else:
        links = [link for link in movie.video_links if link.is_active]

    if not links:
        return _error("No video links available", 404)

    return jsonify({"video_links": [_resolve_link_payload(link) for link in links]})


def _active_ads(ad_type: Optional[str] = None) -> List[AdConfig]:
    query = AdConfig.query.filter(AdConfig.is_active.is_(True))
    if ad_type:
        query = query.filter(AdConfig.type == ad_type)
    return query.order_by(AdConfig.priority.desc(), AdConfig.id.asc()).all()


@app.route("/api/ads")
def api_ads():
    raw_type = request.args.get("type")
    ad_type = None
    if raw_type:
        ad_type = normalize_ad_type(raw_type)
        if ad_type is None:
            return _error("Invalid ad type", 400, f"Unknown ad type '{raw_type}'")

    try:
        ads = _active_ads(ad_type)
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to fetch ads", 500, str(exc))
    return jsonify({"ads": [ad.to_dict() for ad in ads]})


@app.route("/api/ads/schedule")
def api_ads_schedule():
    try:
        duration = _parse_float(request.args.get("duration"), "duration", minimum=0)
    except ValueError as exc:
        return _error("Invalid duration", 400, str(exc))

    try:
        ads = _active_ads()
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Ad schedule lookup failed: %s", exc)
        return _error("Failed to build ad schedule", 500, str(exc))
    return jsonify({"duration": duration, "breaks": plan_ad_breaks(ads, duration)})


@app.route("/api/genres")
def api_genres():
    try:
        query = (
            db.session.query(Genre, func.count(Movie.id).label("movie_count"))
            .join(movie_genres, Genre.id == movie_genres.c.genre_id)
            .join(Movie, Movie.id == movie_genres.c.movie_id)
            .filter(Movie.is_active.is_(True))
            .group_by(Genre.id)
            .order_by(func.count(Movie.id).desc(), Genre.name.asc())
        )
        genres = [
            {**genre.to_dict(), "movie_count": int(movie_count or 0)}
            for genre, movie_count in query
        ]
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Genre statistics query failed: %s", exc)
        return _error("Failed to fetch genres", 500, str(exc))
    return jsonify({"genres": genres, "catalog": list(CATALOG_GENRES)})


# Admin API


@app.route("/api/admin/auth/login", methods=["POST"])
def api_admin_login():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    username = _string_field(data, "username")
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    if not username or not password:
        return _error("Username and password are required", 400)

    try:
        admin = Admin.query.filter(
            or_(Admin.username == username, Admin.email == username)
        ).first()
        if admin is None or not admin.is_active:
            return _error("Invalid credentials", 401)
        if not check_password_hash(admin.password, password):
            return _error("Invalid credentials", 401)

        admin.last_login = datetime.utcnow()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Login failed for %s: %s", username, exc)
        return _error("Login failed", 500, str(exc))

    token = generate_token({"id": admin.id, "username": admin.username, "role": admin.role})
    response = jsonify({"token": token, "admin": admin.to_dict()})
    response.set_cookie(
        config.TOKEN_COOKIE_NAME,
        token,
        max_age=config.JWT_EXPIRES_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="Strict",
    )
    return response


@app.route("/api/admin/auth/logout", methods=["POST"])
def api_admin_logout():
    response = jsonify({"message": "Logged out"})
    response.delete_cookie(config.TOKEN_COOKIE_NAME, path="/")
    return response


@app.route("/api/admin/auth/me")
@require_auth
def api_admin_me():
    return jsonify({"admin": g.admin.to_dict()})


@app.route("/api/admin/movies", methods=["GET"])
@require_auth
def api_admin_movies():
    try:
        page = _parse_int(request.args.get("page"), "page", default=1, minimum=1)
        limit = min(
            _parse_int(request.args.get("limit"), "limit", default=50, minimum=1),
            MAX_PAGE_SIZE,
        )
    except ValueError as exc:
        return _error("Invalid query parameters", 400, str(exc))

    query = _movie_query_with_relations()
    search = (request.args.get("search") or "").strip()
    if search:
        query = query.filter(_search_filter(search))
    movie_type = TYPE_FILTERS.get((request.args.get("type") or "").strip().lower())
    if movie_type:
        query = query.filter(Movie.type == movie_type)

    try:
        total = query.count()
        movies = (
            query.order_by(Movie.created_at.desc(), Movie.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to fetch movies", 500, str(exc))

    return jsonify(
        {
            "movies": [
                movie.to_dict(include_links=True, include_episodes=True)
                for movie in movies
            ],
            "pagination": _pagination(page, limit, total),
        }
    )


@app.route("/api/admin/movies", methods=["POST"])
@require_auth
def api_admin_create_movie():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    movie = Movie()
    try:
        _apply_movie_payload(movie, data, creating=True)
        movie.video_links = _build_video_links(data.get("video_links"))
        if data.get("episodes") is not None:
            movie.episodes = _build_episodes(data.get("episodes"))
        db.session.add(movie)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid movie data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Admin movie creation failed: %s", exc)
        return _error("Failed to create movie", 500, str(exc))

    app.logger.info("Admin %s created movie %s", g.admin.username, movie.id)
    return (
        jsonify({"movie": movie.to_dict(include_links=True, include_episodes=True)}),
        201,
    )


@app.route("/api/admin/movies/<int:movie_id>", methods=["GET"])
@require_auth
def api_admin_movie_detail(movie_id: int):
    movie = _movie_query_with_relations().filter(Movie.id == movie_id).first()
    if movie is None:
        return _error("Movie not found", 404)
    return jsonify({"movie": movie.to_dict(include_links=True, include_episodes=True)})


@app.route("/api/admin/movies/<int:movie_id>", methods=["PUT"])
@require_auth
def api_admin_update_movie(movie_id: int):
    movie = _movie_query_with_relations().filter(Movie.id == movie_id).first()
    if movie is None:
        return _error("Movie not found", 404)

    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    try:
        _apply_movie_payload(movie, data, creating=False)
        if isinstance(data.get("video_links"), (list, tuple, str)):
            movie.video_links = _build_video_links(data.get("video_links"))
        if data.get("episodes") is not None:
            movie.episodes = []
            db.session.flush()
            movie.episodes = _build_episodes(data.get("episodes"))
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid movie data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning("Admin movie update failed for %s: %s", movie_id, exc)
        return _error("Failed to update movie", 500, str(exc))

    return jsonify({"movie": movie.to_dict(include_links=True, include_episodes=True)})


@app.route("/api/admin/movies/<int:movie_id>", methods=["DELETE"])
@require_auth
def api_admin_delete_movie(movie_id: int):
    movie = db.session.get(Movie, movie_id)
    if movie is None:
        return _error("Movie not found", 404)

    try:
        db.session.delete(movie)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to delete movie", 500, str(exc))

    app.logger.info("Admin %s deleted movie %s", g.admin.username, movie_id)
    return jsonify({"message": "Movie deleted successfully"})


def _apply_ad_payload(ad: AdConfig, data: dict, *, creating: bool) -> None:
    if creating or "name" in data:
        name = _string_field(data, "name")
        if not name:
            raise ValueError("name is required")
        ad.name = name

    if creating or "type" in data:
        ad_type = normalize_ad_type(data.get("type"))
        if ad_type is None:
            raise ValueError("type must be one of pre-roll, mid-roll, post-roll, banner")
        ad.type = ad_type

    for field in ("content_url", "click_url"):
        if field in data:
            value = data.get(field)
            setattr(ad, field, str(value).strip() if value else None)

    if "position" in data:
        position = _parse_int(data.get("position"), "position", minimum=0)
        if position is not None and position > 100:
            raise ValueError("position must be a percentage between 0 and 100")
        ad.position = position
    if "duration" in data:
        ad.duration = _parse_int(data.get("duration"), "duration", minimum=0)
    if "priority" in data or creating:
        ad.priority = _parse_int(data.get("priority"), "priority", default=0)
    if "is_active" in data:
        ad.is_active = _parse_bool(data.get("is_active"))


@app.route("/api/admin/ads", methods=["GET"])
@require_auth
def api_admin_ads():
    try:
        ads = AdConfig.query.order_by(
            AdConfig.priority.desc(), AdConfig.created_at.desc(), AdConfig.id.desc()
        ).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to fetch ads", 500, str(exc))
    return jsonify({"ads": [ad.to_dict() for ad in ads]})


@app.route("/api/admin/ads", methods=["POST"])
@require_auth
def api_admin_create_ad():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    ad = AdConfig()
    try:
        _apply_ad_payload(ad, data, creating=True)
        db.session.add(ad)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid ad data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to create ad", 500, str(exc))
    return jsonify({"ad": ad.to_dict()}), 201


@app.route("/api/admin/ads/<int:ad_id>", methods=["PUT"])
@require_auth
def api_admin_update_ad(ad_id: int):
    ad = db.session.get(AdConfig, ad_id)
    if ad is None:
        return _error("Ad not found", 404)

    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    try:
        _apply_ad_payload(ad, data, creating=False)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid ad data", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to update ad", 500, str(exc))
    return jsonify({"ad": ad.to_dict()})


@app.route("/api/admin/ads/<int:ad_id>", methods=["DELETE"])
@require_auth
def api_admin_delete_ad(ad_id: int):
    ad = db.session.get(AdConfig, ad_id)
    if ad is None:
        return _error("Ad not found", 404)

    try:
        db.session.delete(ad)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to delete ad", 500, str(exc))
    return jsonify({"message": "Ad deleted successfully"})


# TMDB import


def _import_episodes_from_tmdb(movie: Movie, tmdb_id: int, seasons_payload: list) -> int:
    """Create episodes for every season listed by TMDB. Returns the number added."""

    created = 0
    for season_entry in seasons_payload or []:
        try:
            season_number = int(season_entry.get("season_number"))
        except (AttributeError, TypeError, ValueError):
            continue
        if season_number < 0:
            continue

        try:
            episodes_payload = tmdb_client.get_season_episodes(tmdb_id, season_number)
        except (tmdb_client.TMDBNotFoundError, requests.RequestException) as exc:
            app.logger.warning(
                "TMDB season request failed for %s S%02d: %s", tmdb_id, season_number, exc
            )
            continue

        for episode_entry in episodes_payload:
            try:
                episode_number = int(episode_entry.get("episode_number"))
            except (TypeError, ValueError):
                continue
            if episode_number < 0:
                continue
            still_path = episode_entry.get("still_path")
            runtime = episode_entry.get("runtime")
            movie.episodes.append(
                Episode(
                    season_number=season_number,
                    episode_number=episode_number,
                    title=episode_entry.get("name") or f"Episode {episode_number}",
                    description=episode_entry.get("overview") or None,
                    duration=runtime if isinstance(runtime, int) else None,
                    thumbnail=tmdb_client.image_url(still_path, "w300") if still_path else None,
                )
            )
            created += 1
    return created


def _import_tmdb_title(tmdb_id: int, requested_type: Optional[str], include_episodes: bool):
    media_type = "tv" if requested_type in {"series", "tv", "animated-series"} else "movie"
    tmdb_data = tmdb_client.get_details(tmdb_id, media_type)
    if not tmdb_data:
        return _error("Movie not found in TMDB", 404)

    formatted = tmdb_client.format_movie_from_tmdb(tmdb_data, media_type)
    existing = Movie.query.filter_by(tmdb_id=formatted["tmdb_id"]).first()
    if existing is not None:
        return _error("Movie already exists", 400, movie=existing.to_dict())

    movie = Movie(
        title=formatted["title"] or "Untitled",
        title_original=formatted["title_original"],
        description=formatted["description"] or "Опис відсутній",
        description_short=formatted["description_short"],
        poster=formatted["poster"],
        backdrop=formatted["backdrop"],
        release_date=_parse_release_date(formatted["release_date"])
        or datetime.utcnow().date().isoformat(),
        countries=_serialize_list_field(formatted["countries"]),
        rating=formatted["rating"] or 0,
        rating_count=formatted["rating_count"] or 0,
        duration=formatted["duration"],
        type=formatted["type"],
        tmdb_id=formatted["tmdb_id"],
        imdb_id=formatted["imdb_id"],
    )
    _set_movie_genres(movie, formatted["genres"])
    db.session.add(movie)

    episodes_created = 0
    if media_type == "tv" and include_episodes:
        episodes_created = _import_episodes_from_tmdb(
            movie, formatted["tmdb_id"], tmdb_data.get("seasons") or []
        )

    db.session.commit()
    app.logger.info(
        "Imported TMDB %s %s as movie %s (%d episodes)",
        media_type,
        tmdb_id,
        movie.id,
        episodes_created,
    )
    return (
        jsonify(
            {
                "movie": movie.to_dict(include_episodes=include_episodes),
                "imported": True,
                "episodes_created": episodes_created,
            }
        ),
        201,
    )


def _tag_results(payload: dict, media_type: str) -> list[dict]:
    return [
        {**item, "media_type": media_type}
        for item in (payload or {}).get("results") or []
        if isinstance(item, dict)
    ]


def _list_tmdb_titles(list_type: str, page: int):
    if list_type == "popular":
        movies_data = tmdb_client.get_popular_movies(page)
        series_data = tmdb_client.get_popular_series(page)
        return jsonify(
            {
                "results": _tag_results(movies_data, "movie") + _tag_results(series_data, "tv"),
                "movies_page": (movies_data or {}).get("page"),
                "series_page": (series_data or {}).get("page"),
            }
        )

    if list_type == "movies":
        data = tmdb_client.get_popular_movies(page)
        media_type = "movie"
    elif list_type == "series":
        data = tmdb_client.get_popular_series(page)
        media_type = "tv"
    elif list_type == "animated-movies":
        data = tmdb_client.discover_animated("movie", page)
        media_type = "movie"
    else:
        data = tmdb_client.discover_animated("tv", page)
        media_type = "tv"

    if not data or not data.get("results"):
        return _error("No results found", 404)

    return jsonify(
        {
            "results": _tag_results(data, media_type),
            "page": data.get("page"),
            "total_pages": data.get("total_pages"),
        }
    )


@app.route("/api/admin/import/tmdb", methods=["POST"])
@require_auth
def api_admin_import_tmdb():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    requested_type = _string_field(data, "type").lower() or None

    try:
        page = _parse_int(data.get("page"), "page", default=1, minimum=1)
        tmdb_id = _parse_int(data.get("tmdb_id"), "tmdb_id", minimum=1)
    except ValueError as exc:
        return _error("Invalid request parameters", 400, str(exc))
    search_query = _string_field(data, "search_query")

    try:
        if tmdb_id:
            return _import_tmdb_title(
                tmdb_id, requested_type, _parse_bool(data.get("include_episodes"), False)
            )

        if search_query:
            search_results = tmdb_client.search_multi(search_query, page)
            if not search_results or "results" not in search_results:
                return _error("No results found", 404)
            return jsonify(
                {
                    "results": [
                        tmdb_client.format_search_result(item)
                        for item in search_results["results"]
                        if isinstance(item, dict)
                    ],
                    "total_pages": search_results.get("total_pages"),
                }
            )

        if requested_type in IMPORT_LIST_TYPES:
            return _list_tmdb_titles(requested_type, page)
    except tmdb_client.TMDBConfigurationError:
        return _error("TMDB API key is not configured", 400, tmdb_client.TMDB_API_KEY_HELP)
    except tmdb_client.TMDBNotFoundError:
        return _error("Movie not found in TMDB", 404)
    except requests.RequestException as exc:
        app.logger.warning("TMDB import request failed: %s", exc)
        return _error("Import failed", 500, str(exc))
    except (ValueError, SQLAlchemyError) as exc:
        db.session.rollback()
        app.logger.warning("TMDB import failed: %s", exc)
        return _error("Import failed", 500, str(exc))

    return _error("Invalid request parameters", 400)


@app.route("/api/admin/import/tmdb", methods=["PUT"])
@require_auth
def api_admin_import_links():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    video_links = data.get("video_links")
    try:
        tmdb_id = _parse_int(data.get("tmdb_id"), "tmdb_id", minimum=1)
    except ValueError as exc:
        return _error("Invalid request parameters", 400, str(exc))
    if not tmdb_id or video_links is None:
        return _error("tmdb_id and video_links are required", 400)

    movie = Movie.query.filter_by(tmdb_id=tmdb_id).first()
    if movie is None:
        return _error("Movie not found", 404)

    try:
        movie.video_links = _build_video_links(video_links)
        db.session.commit()
    except ValueError as exc:
        db.session.rollback()
        return _error("Invalid video links", 400, str(exc))
    except SQLAlchemyError as exc:
        db.session.rollback()
        return _error("Failed to update video links", 500, str(exc))

    return jsonify({"movie": movie.to_dict(include_links=True)})


@app.route("/api/admin/video-links/parse", methods=["POST"])
@require_auth
def api_admin_parse_video_link():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        return _error("url is required", 400)

    valid = validate_video_url(url)
    parsed = parse_video_url(url) if valid else None
    host_key, host_name = identify_video_host(url)
    return jsonify(
        {
            "url": url,
            "valid": valid,
            "parsed": parsed.to_dict() if parsed else None,
            "playback": resolve_playback(parsed.url) if parsed else None,
            "host_key": host_key,
            "host_display_name": host_name,
        }
    )


@app.route("/api/admin/video-links/search", methods=["POST"])
@require_auth
def api_admin_search_video_links():
    data = _json_object()
    if data is None:
        return _error("Invalid request body", 400)
    title = _string_field(data, "title")
    if not title:
        return _error("title is required", 400)
    try:
        year = _parse_int(data.get("year"), "year", minimum=1800)
    except ValueError as exc:
        return _error("Invalid request parameters", 400, str(exc))

    links = search_video_links(title, year)
    return jsonify({"title": title, "year": year, "links": links})


ensure_database()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000, debug=True)
