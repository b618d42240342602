"""Flask application factory."""
import atexit
import traceback

from flask import Flask, jsonify

from pos_register.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize database
    init_db(app)

    # One engine per terminal, created on first use
    from pos_register.blueprints.register import register_bp, init_register
    init_register(app)
    app.register_blueprint(register_bp)
    atexit.register(app.extensions['register_engines'].close_all)

    from pos_register.cli_commands import init_cli_commands
    init_cli_commands(app)

    # Error Handlers
    from pos_register.exceptions import RegisterError

    @app.errorhandler(RegisterError)
    def handle_register_error(error):
        """Handle register exceptions surfaced to the caller."""
        if error.status_code >= 500:
            app.logger.error(f"RegisterError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"RegisterError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    return app
