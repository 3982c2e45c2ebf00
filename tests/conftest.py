import os
import tempfile

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="kinoteka-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'kinoteka.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["TMDB_API_KEY"] = ""

from app import (  # noqa: E402
    Episode,
    Movie,
    VideoLink,
    _find_or_create_genre,
    app as flask_app,
    create_admin,
    db,
    generate_token,
)


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return create_admin("admin", "admin@example.com", "secret123")


@pytest.fixture
def auth_headers(admin):
    token = generate_token({"id": admin.id, "username": admin.username, "role": admin.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_movie(app):
    def _make(title="Test movie", *, genres=(), links=(), episodes=(), **fields):
        fields.setdefault("description", f"{title} description")
        movie = Movie(title=title, **fields)
        for name in genres:
            movie.genres.append(_find_or_create_genre(name))
        for link in links:
            movie.video_links.append(VideoLink(**link))
        for entry in episodes:
            entry = dict(entry)
            episode_links = entry.pop("links", ())
            episode = Episode(**entry)
            for link in episode_links:
                episode.video_links.append(VideoLink(**link))
            movie.episodes.append(episode)
        db.session.add(movie)
        db.session.commit()
        return movie

    return _make
