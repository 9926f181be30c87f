
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wellfield.exceptions import InputError

from .routers import calibrate, field, wells

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Wellfield Interference API", version="0.1.0")

raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
allow_origins = [
    origin.strip()
    for origin in raw_origins.split(",")
    if origin.strip()
]
if not allow_origins or allow_origins == ["*"]:
    allow_origins = ["*"]

allow_credentials = True
if allow_origins == ["*"]:
    # Browsers reject wildcard origins when credentials are enabled and FastAPI
    # falls back to echoing the request origin. Disable credentials explicitly.
    allow_credentials = False
elif "*" in allow_origins:
    raise ValueError("CORS_ALLOW_ORIGINS cannot mix '*' with explicit origins")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.get("/health")
def health():
    return {"ok": True}

app.include_router(wells.router)
app.include_router(calibrate.router)
app.include_router(field.router)
