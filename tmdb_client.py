from __future__ import annotations

import logging
from typing import Any, Optional

import requests

import config

logger = logging.getLogger(__name__)

ANIMATION_GENRE_ID = 16
TMDB_API_KEY_HELP = (
    "Add TMDB_API_KEY to the .env file. Instructions: "
    "https://www.themoviedb.org/settings/api"
)


class TMDBConfigurationError(RuntimeError):
    pass


class TMDBNotFoundError(RuntimeError):
    pass


def get_tmdb_api_key() -> str:
    return (config.TMDB_API_KEY or "").strip()


def _tmdb_get(path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    api_key = get_tmdb_api_key()
    if not api_key:
        raise TMDBConfigurationError(
            "TMDB_API_KEY is not configured. Please add it to .env file"
        )

    query: dict[str, Any] = {"api_key": api_key, "language": config.TMDB_LANGUAGE}
    if params:
        query.update(params)

    response = requests.get(f"{config.TMDB_BASE_URL}{path}", params=query, timeout=20)
    if response.status_code == 404:
        raise TMDBNotFoundError(f"TMDB resource {path} was not found.")
    response.raise_for_status()
    return response.json()


def _media_endpoint(media_type: str) -> str:
    return "tv" if media_type == "tv" else "movie"


def search_multi(query: str, page: int = 1) -> dict[str, Any]:
    return _tmdb_get("/search/multi", {"query": query, "page": page})


def get_details(tmdb_id: int, media_type: str = "movie") -> dict[str, Any]:
    return _tmdb_get(
        f"/{_media_endpoint(media_type)}/{tmdb_id}",
        {"append_to_response": "videos,images"},
    )


def get_popular_movies(page: int = 1) -> dict[str, Any]:
    return _tmdb_get("/movie/popular", {"page": page})


def get_popular_series(page: int = 1) -> dict[str, Any]:
    return _tmdb_get("/tv/popular", {"page": page})


def discover_animated(media_type: str = "movie", page: int = 1) -> dict[str, Any]:
    return _tmdb_get(
        f"/discover/{_media_endpoint(media_type)}",
        {
            "page": page,
            "with_genres": ANIMATION_GENRE_ID,
            "sort_by": "popularity.desc",
        },
    )


def get_genres(media_type: str = "movie") -> list[dict[str, Any]]:
    try:
        payload = _tmdb_get(f"/genre/{_media_endpoint(media_type)}/list")
    except (TMDBConfigurationError, TMDBNotFoundError, requests.RequestException) as exc:
        logger.warning("TMDB genre list request failed: %s", exc)
        return []
    genres = payload.get("genres") if isinstance(payload, dict) else None
    return genres if isinstance(genres, list) else []


def get_season_episodes(tv_id: int, season_number: int) -> list[dict[str, Any]]:
    payload = _tmdb_get(f"/tv/{tv_id}/season/{season_number}")
    episodes = payload.get("episodes") or []
    return [episode for episode in episodes if isinstance(episode, dict)]


def image_url(path: Optional[str], size: str = "w500") -> str:
    if not path:
        return "/placeholder-poster.jpg"
    return f"{config.TMDB_IMAGE_BASE}/{size}{path}"


def backdrop_url(path: Optional[str], size: str = "w1280") -> str:
    if not path:
        return "/placeholder-backdrop.jpg"
    return f"{config.TMDB_IMAGE_BASE}/{size}{path}"


def _genre_ids(tmdb_data: dict[str, Any]) -> set[int]:
    ids: set[int] = set()
    for genre in tmdb_data.get("genres") or []:
        if isinstance(genre, dict):
            try:
                ids.add(int(genre.get("id")))
            except (TypeError, ValueError):
                continue
    for genre_id in tmdb_data.get("genre_ids") or []:
        try:
            ids.add(int(genre_id))
        except (TypeError, ValueError):
            continue
    return ids


def catalog_type_for(tmdb_data: dict[str, Any], media_type: str = "movie") -> str:
    animated = ANIMATION_GENRE_ID in _genre_ids(tmdb_data)
    if media_type == "tv":
        return "ANIMATED_SERIES" if animated else "SERIES"
    return "ANIMATED_MOVIE" if animated else "MOVIE"


def format_movie_from_tmdb(tmdb_data: dict[str, Any], media_type: str = "movie") -> dict[str, Any]:
    overview = tmdb_data.get("overview") or ""
    runtime = tmdb_data.get("runtime")
    if not runtime:
        episode_run_time = tmdb_data.get("episode_run_time") or []
        runtime = episode_run_time[0] if episode_run_time else None

    return {
        "title": tmdb_data.get("title") or tmdb_data.get("name"),
        "title_original": tmdb_data.get("original_title") or tmdb_data.get("original_name"),
        "description": overview,
        "description_short": overview[:200],
        "poster": image_url(tmdb_data.get("poster_path")),
        "backdrop": backdrop_url(tmdb_data.get("backdrop_path")),
        "release_date": tmdb_data.get("release_date") or tmdb_data.get("first_air_date"),
        "genres": [
            {"id": genre.get("id"), "name": genre.get("name")}
            for genre in tmdb_data.get("genres") or []
            if isinstance(genre, dict) and genre.get("name")
        ],
        "countries": [
            country.get("name")
            for country in tmdb_data.get("production_countries") or []
            if isinstance(country, dict) and country.get("name")
        ],
        "rating": tmdb_data.get("vote_average") or 0,
        "rating_count": tmdb_data.get("vote_count") or 0,
        "duration": runtime or None,
        "type": catalog_type_for(tmdb_data, media_type),
        "tmdb_id": tmdb_data.get("id"),
        "imdb_id": tmdb_data.get("imdb_id") or None,
    }


def format_search_result(item: dict[str, Any]) -> dict[str, Any]:
    poster_path = item.get("poster_path")
    return {
        "id": item.get("id"),
        "title": item.get("title") or item.get("name"),
        "overview": item.get("overview"),
        "poster": f"{config.TMDB_IMAGE_BASE}/w500{poster_path}" if poster_path else None,
        "release_date": item.get("release_date") or item.get("first_air_date"),
        "media_type": item.get("media_type") or ("movie" if item.get("title") else "tv"),
    }
