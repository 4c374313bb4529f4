"""
Application entry point
"""

import os
import uvicorn
from carenow.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    # Hosting platforms set PORT
    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(
        "carenow.main:app",
        host=settings.HOST,
        port=port,
        reload=settings.DEBUG
    )
