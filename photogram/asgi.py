from __future__ import annotations

from photogram.main import create_app

# uvicorn photogram.asgi:app
app = create_app()
