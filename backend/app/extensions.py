"""Extensions used by the Flask application."""

from flask import request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy


def _limiter_key_func() -> str:
    user_id = request.headers.get("X-User-Id")
    if user_id:
        return f"user:{user_id}"
    return get_remote_address()


db = SQLAlchemy()
cors = CORS()
limiter = Limiter(key_func=_limiter_key_func, default_limits=[])

__all__ = ["db", "cors", "limiter"]
