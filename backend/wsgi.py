# backend/wsgi.py
from znpos import create_app

app = create_app()
