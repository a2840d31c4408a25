from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect


from .config_db import load_env_once, resolve_database_uri, resolve_secret_key

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()


def create_app(config_object=None):
    app = Flask(__name__)

    # Load .env dan resolve DSN/SECRET
    load_env_once()
    app.config["SQLALCHEMY_DATABASE_URI"] = resolve_database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SECRET_KEY"] = resolve_secret_key()
    # CSRF token dibiarkan tidak kedaluwarsa agar interaksi form panjang tidak gagal
    app.config["WTF_CSRF_TIME_LIMIT"] = None
    app.config["PEMBUKUAN_PER_PAGE"] = 25

    if config_object is not None:
        app.config.from_object(config_object)

    from .logging_config import setup_logging

    setup_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    from .routes import bp
    from .cli import retry_pending_effects

    app.register_blueprint(bp)
    app.cli.add_command(retry_pending_effects)

    @app.shell_context_processor
    def _ctx():
        # supaya model langsung tersedia di flask shell
        from . import models

        ctx = {"db": db}
        for name in dir(models):
            attr = getattr(models, name)
            if isinstance(attr, type) and issubclass(attr, db.Model):
                ctx[name] = attr
        return ctx

    return app
