# GST invoicing backend entrypoint: FastAPI app wiring.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.core.logging_config import setup_logging
from backend.app.core.settings import get_settings
from backend.app.api import customers
from backend.app.api import invoices
from backend.app.api import reports
from backend.app.api import data
from backend.app.db import base  # noqa: F401  registers models on Base.metadata
from backend.app.db.base_class import Base
from backend.app.db.session import engine

settings = get_settings()
app = FastAPI(title=settings.app_name)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers.router)
app.include_router(invoices.router)
app.include_router(reports.router)
app.include_router(data.router)


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    setup_logging()
    Base.metadata.create_all(bind=engine)
