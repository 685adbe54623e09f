# backend/config/settings/development.py
from .base import *

DEBUG = True

ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')

# Development-specific settings
CORS_ALLOW_ALL_ORIGINS = True
