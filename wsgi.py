"""WSGI entrypoint for development and production (project root).

This file creates the Flask application by calling create_app() from
the `meteo_api.app` package. Placing the entrypoint at the repository root
makes it straightforward to reference as `wsgi:app` from Gunicorn or other
WSGI servers.

Usage examples:
  - Development: python -m flask --app wsgi:app run --debug
  - Gunicorn:   gunicorn -c gunicorn.conf.py wsgi:app
  - Direct:     python wsgi.py  (listens on $PORT, default 3000)
"""
from dotenv import load_dotenv

# Load environment variables from .env (if present)
load_dotenv()

from meteo_api.app import create_app  # noqa: E402
from meteo_api.app.config import get_config  # noqa: E402

# Create the Flask application
app = create_app(get_config())

if __name__ == '__main__':
    # Run development server when executed directly
    app.run(host='0.0.0.0', port=app.config['PORT'], debug=app.config.get('DEBUG', False))
