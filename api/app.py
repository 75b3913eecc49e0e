import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routers import ziwei as ziwei_router
from .middleware.logging import LoggingMiddleware


app = FastAPI(title="ziwei-chart (dev)", version="0.1.0")

# CORS: localhost in development, configured origins elsewhere
app_env = os.getenv("APP_ENV")
is_dev = app_env is None or app_env.lower() in {"dev", "development"}

if is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )
else:
    allowed = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]
    preview = os.getenv("PREVIEW_ORIGIN")
    if preview:
        allowed.append(preview)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        max_age=86400,
    )

app.add_middleware(LoggingMiddleware)

app.include_router(ziwei_router.router)


@app.get("/__health")
def health():
    return {"ok": True}


@app.get("/")
def root():
    return {"message": "ziwei-chart API is running. See /__health and /docs."}
