# hris_api/wsgi.py
import os

from hris_api import create_app

app = create_app(os.getenv("HRIS_CONFIG"))
