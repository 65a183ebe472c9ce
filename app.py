import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, render_template
from werkzeug.exceptions import HTTPException

import request_context
import database
import security
from config import Config
from request_context import with_context
from database import rollback_db
from models.posts import list_posts_query
from routes.admin_bp import admin_bp
from routes.auth_bp import auth_bp
from routes.comments_bp import comments_bp
from routes.posts_bp import posts_bp
from routes.tags_bp import tags_bp
from routes.users_bp import users_bp

#Here the blueprints are imported from other modules so they can be registered

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(app):
    """Console logging always, a rotating log file when LOG_FILE is set."""
    formatter = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(app.config['LOG_LEVEL'])

    # One console handler per process, one file handler per log file
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        path = os.path.abspath(log_file)
        if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == path for h in root.handlers):
            file_handler = RotatingFileHandler(path, maxBytes=2000000, backupCount=3, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return render_template('error.html', code=404, message="Page not found."), 404

    @app.errorhandler(Exception)
    def unhandled(e):
        # abort(404), abort(401)... keep their own status and handlers
        if isinstance(e, HTTPException):
            return e
        logger.exception("Request failed")
        rollback_db()
        return render_template('error.html', code=500, message="Something went wrong."), 500


def create_app(config_object=Config, overrides=None):
    """
    Builds the application. Everything request handlers need hangs off the
    app created here; nothing is initialized lazily at import time.
    """
    app = Flask(__name__)  # Creates the central application object.
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # Hook order matters: the SSL redirect and the CSRF check run before the
    # current user is resolved.
    database.init_app(app)
    security.init_app(app)
    request_context.init_app(app)
    register_error_handlers(app)

    """ Here we are registering blueprints
    # We enroll blueprints in an effort of decoupling various functional areas of the application.
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(posts_bp)
    app.register_blueprint(comments_bp, url_prefix='/comments')
    app.register_blueprint(tags_bp, url_prefix='/tags')
    app.register_blueprint(admin_bp)

    @app.route('/')
    @with_context
    def home(ctx):
        """Front page: the latest posts and every tag."""
        latest = [dict(row) for row in ctx.db.execute(list_posts_query() + ' LIMIT 5').fetchall()]
        all_tags = [dict(row) for row in ctx.db.execute('SELECT * FROM tags ORDER BY name').fetchall()]
        return render_template('index.html', posts=latest, tags=all_tags)

    logger.info("Application created (env=%s)", app.config['ENV'])
    return app


if __name__ == '__main__':
    """ Over here server is started
     Note: Debug mode should be disabled in a production environment.
    """
    create_app().run(host="0.0.0.0")
