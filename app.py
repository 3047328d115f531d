import logging
import os
from dotenv import load_dotenv
load_dotenv()
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from classes.exceptions import QuizAppError
from config import config_dict, ProdConfig
from models import db
from routes.authentication import auth_bp
from routes.admin import admin_bp
from routes.students import student_bp

migrate = Migrate()


def register_error_handlers(app):
    @app.errorhandler(QuizAppError)
    def handle_quiz_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception("Unhandled error: %s", error)
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500


def create_app(env=None):
    env = (env or os.environ.get("FLASK_ENV", "production")).lower()

    app = Flask(__name__)
    app.config.from_object(config_dict.get(env, ProdConfig))

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    app.logger.info("Environment: %s", env)

    CORS(app, resources={r"/api/*": {
        "origins": app.config["CORS_ORIGINS"],
        "supports_credentials": True,
        "allow_headers": ["Content-Type", "Authorization", "x-admin-token"],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    }})

    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(student_bp, url_prefix='/api/student')

    register_error_handlers(app)

    @app.route('/')
    def home():
        return "Welcome to QuizHub!"

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False))
