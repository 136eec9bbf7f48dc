# Deploy: set SLACK_SIGNING_SECRET and API_KEY, then run 'uvicorn server:app --host=0.0.0.0 --port=8000'
import logging

from standup_pulse.api import create_app
from standup_pulse.config import load_settings

settings = load_settings()

logging.basicConfig(level=settings.log_level.upper(), handlers=[logging.StreamHandler()])

app = create_app(settings)

__all__ = ["app"]
