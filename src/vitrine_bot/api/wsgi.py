
"""Ponto de entrada WSGI: `flask --app vitrine_bot.api.wsgi run` ou gunicorn `vitrine_bot.api.wsgi:app`."""
from kink import di
from ..core.settings import Settings
from .app import create_app

app = create_app()

if __name__ == "__main__":
    s = di[Settings]
    app.run(host=s.host, port=s.port, debug=s.flask_debug)
