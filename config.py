"""
Configuration

Settings come from the process environment, optionally seeded from a .env
file by python-dotenv. Only DATABASE_URL has no default.
"""

import os
from functools import lru_cache
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


class Settings(BaseModel):
    database_url: str = Field(alias="DATABASE_URL")
    database_name: str = Field(default="catalog", alias="DATABASE_NAME")
    collection: str = Field(default="product_items", alias="PRODUCT_COLLECTION")
    port: int = Field(default=5000, alias="PORT")
    timeout_ms: int = Field(default=30000, alias="MONGO_TIMEOUT_MS")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Parse settings from `environ` (os.environ by default)."""
    environ = os.environ if environ is None else environ
    try:
        return Settings(**environ)
    except ValidationError as exc:
        missing, invalid = [], []
        for error in exc.errors():
            name = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                missing.append(name)
            else:
                invalid.append(f"{name} ({error['msg']})")
        problems = []
        if missing:
            problems.append(f"missing {', '.join(missing)}")
        if invalid:
            problems.append(f"invalid {', '.join(invalid)}")
        raise RuntimeError(f"Bad catalog configuration: {'; '.join(problems)}") from exc


@lru_cache()
def get_settings() -> Settings:
    # Variables already set in the environment win over .env entries.
    load_dotenv()
    return load_settings()
