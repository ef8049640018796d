import os
import logging
from datetime import datetime
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from flask import Flask, request, jsonify, g
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from src.auth import init_auth
from src.database.db_manager import initialize_database
from src.domain.catalog import SongCache, get_song_cache
from src.interfaces.http.routes import (
    admin_bp,
    health_bp,
    playrecords_bp,
    songs_bp,
)
from src.observability import configure_structured_logging, metrics_blueprint, update_cache_size


logger = logging.getLogger(__name__)


def configure_logging(log_dir: str) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is set
      - Werkzeug/Flask loggers routed to root

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_path = os.path.join(log_dir, f"log-{timestamp}")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; remove existing FileHandlers to avoid duplicates
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if Config.ENABLE_CONSOLE_LOGS:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def create_app(song_cache: SongCache | None = None, config_overrides: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_structured_logging(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in app.config['CORS_ALLOWED_ORIGINS']
        if origin and origin.strip() and origin.strip() != "*"
    })
    CORS(app, resources={r"/api/*": {"origins": allowed_origins}}, supports_credentials=True)

    @app.errorhandler(Exception)
    def _handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({'error': exc.name, 'message': exc.description}), exc.code
        app.logger.error("Unhandled error on %s: %s", request.path, exc, exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500

    initialize_database(app)
    init_auth(app)

    # One cache per process unless a caller injects its own
    cache = song_cache if song_cache is not None else get_song_cache()
    app.extensions['song_cache'] = cache
    update_cache_size(len(cache))
    stats = cache.stats()
    app.logger.info(
        "Song cache attached: size=%s max_size=%s ttl=%ss",
        stats.size, stats.max_size, stats.ttl,
    )

    app.register_blueprint(songs_bp)
    app.register_blueprint(playrecords_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(metrics_blueprint)
    app.register_blueprint(health_bp)

    return app


if __name__ == '__main__':
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src', 'log')
    debug_mode = bool(Config.DEBUG)
    # With the reloader, only the child process configures file logging
    if not debug_mode or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        log_file_path = configure_logging(log_dir)
        logger.info("File logging initialized at %s", log_file_path)

    if not Config.ADMIN_USERNAME:
        logger.warning("ADMIN_USERNAME is not set; cache admin endpoints require a user flagged is_admin.")

    app = create_app()
    app.run(debug=debug_mode, host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
