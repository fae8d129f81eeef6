#!/usr/bin/env python3
"""
Run script for the Essay Review backend
"""
import uvicorn

from essay_review.config.settings import settings
from essay_review.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
