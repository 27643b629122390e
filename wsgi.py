"""WSGI entry point for Gunicorn."""
import sys
import os

# Project root on the path so config.py resolves
sys.path.insert(0, os.path.dirname(__file__))

from invoicing import create_app

# Production config from the environment
app = create_app()

if __name__ == "__main__":
    app.run()
