# WSGI para gunicorn/render: gunicorn proxyshop.wsgi:app
from proxyshop.main import create_app

app = create_app()
