"""WSGI entry point for Gunicorn (e.g. `gunicorn wsgi:app`)."""
import os

from pos_register import create_app

# REGISTER_CONFIG selects the config class, e.g. config.TestConfig
app = create_app(os.getenv('REGISTER_CONFIG', 'config.Config'))

if __name__ == "__main__":
    app.run()
