# backend/wsgi.py
from expense_tracker import create_app

app = create_app()
