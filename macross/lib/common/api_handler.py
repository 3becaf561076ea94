"""FastAPI hosting for engine services: settings, CORS and the uvicorn lifecycle."""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ServiceSettings(BaseModel):
    """Bind address, CORS origins and log level for one service."""

    model_config = {"frozen": True, "extra": "forbid"}

    host: str = Field(default="0.0.0.0", description="Interface the API binds to.")
    port: int = Field(default=8082, ge=1, le=65535, description="Port the API listens on.")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser.",
    )
    log_level: str = Field(default="INFO", description="Root log level name.")
    shutdown_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for uvicorn to exit.")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        # CORS_ORIGINS is a comma-separated list: "http://localhost:3000,http://10.0.0.5:3000"
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **defaults) -> "ServiceSettings":
        """Read API_HOST, API_PORT, CORS_ORIGINS and LOGLEVEL over ``defaults``."""
        environ = os.environ if environ is None else environ
        env_keys = {
            "host": "API_HOST",
            "port": "API_PORT",
            "cors_origins": "CORS_ORIGINS",
            "log_level": "LOGLEVEL",
        }
        values = dict(defaults)
        values.update({field: environ[key] for field, key in env_keys.items() if key in environ})
        return cls(**values)


class APIHandler(ABC):
    """Serve a FastAPI application built from ``ServiceSettings``."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-friendly service name used for logging and titles."""
        ...

    def __init__(self, settings: Optional[ServiceSettings] = None) -> None:
        self.settings = settings or ServiceSettings()
        self._api_app = FastAPI(title=f"{self.name} API")
        self._server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None

        logger.debug("%s CORS allowed origins: %s", self.name, self.settings.cors_origins)
        self._api_app.add_middleware(
            CORSMiddleware,
            allow_origins=list(self.settings.cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
        self._setup_routes()

    @property
    def app(self) -> FastAPI:
        """The FastAPI application, for test clients or mounting."""
        return self._api_app

    @abstractmethod
    def _setup_routes(self) -> None:
        """Register API routes on ``self._api_app``."""

    async def start_api_server(self) -> None:
        config = uvicorn.Config(
            self._api_app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve())
        logger.info("%s API listening on http://%s:%d", self.name, self.settings.host, self.settings.port)

    async def stop_api_server(self) -> None:
        """Ask uvicorn to exit and wait up to ``shutdown_timeout`` seconds."""
        if self._server is None:
            return
        self._server.should_exit = True
        if self._server_task is not None:
            try:
                await asyncio.wait_for(self._server_task, timeout=self.settings.shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning("%s API server did not stop within %.1fs", self.name, self.settings.shutdown_timeout)
            finally:
                self._server_task = None
        self._server = None
        logger.info("%s API server stopped", self.name)
