from __future__ import annotations

import logging

from fastapi import HTTPException
from pydantic import ValidationError

from macross.lib.common.api_handler import APIHandler, ServiceSettings
from macross.lib.devtools import validation
from macross.lib.host import PaperHost, TradingPolicy
from macross.lib.indicators import MovingAverageProvider
from macross.lib.strategies import CrossoverConfig, CrossoverStrategy
from macross.services.strategy_engine.schemas import (
    EvaluateRequest,
    EvaluateResponse,
    HostActionOut,
    StrategyValidateRequest,
    StrategyValidateResponse,
)

logger = logging.getLogger(__name__)


def _errors(exc: ValidationError) -> list[dict]:
    return exc.errors(include_url=False, include_context=False)


class StrategyEngine(APIHandler):
    """Stateless evaluation service for the crossover strategy.

    Every request carries the host state it needs; nothing is kept between
    calls, matching the one-invocation-per-update model of the engine.
    """

    name = "StrategyEngine"

    def __init__(
        self,
        settings: ServiceSettings | None = None,
        provider: MovingAverageProvider | None = None,
    ) -> None:
        self._provider = provider or MovingAverageProvider()
        APIHandler.__init__(self, settings)

    def _setup_routes(self) -> None:
        logger.info("StrategyEngine: registering API routes")
        self._api_app.router.add_api_route(
            "/api/strategy-engine/health",
            self.handle_health,
            methods=["GET"],
        )
        self._api_app.router.add_api_route(
            "/api/strategy-engine/config-schema",
            self.handle_config_schema,
            methods=["GET"],
        )
        self._api_app.router.add_api_route(
            "/internal/strategy/validate",
            self.handle_validate_strategy,
            methods=["POST"],
            response_model=StrategyValidateResponse,
        )
        self._api_app.router.add_api_route(
            "/api/strategy-engine/evaluate",
            self.handle_evaluate,
            methods=["POST"],
            response_model=EvaluateResponse,
        )

    async def start(self) -> None:
        """Starts the API server."""
        await self.start_api_server()
        logger.info("%s started", self.name)

    async def stop(self) -> None:
        """Shuts down the API server."""
        await self.stop_api_server()
        logger.info("%s stopped", self.name)

    async def handle_health(self) -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"service": self.name, "status": "ok"}

    async def handle_config_schema(self) -> dict:
        """JSON schema of the strategy configuration, for form generation."""
        return CrossoverStrategy.get_config_schema()

    def _build_strategy(self, config: dict) -> CrossoverStrategy:
        try:
            return CrossoverStrategy(CrossoverConfig(**config), provider=self._provider)
        except ValidationError as exc:
            logger.warning("Rejected strategy config: %s", exc.error_count())
            raise HTTPException(status_code=422, detail=_errors(exc))

    async def handle_validate_strategy(
        self, request: StrategyValidateRequest
    ) -> StrategyValidateResponse:
        """Validate a configuration and echo it back with defaults applied."""
        strategy = self._build_strategy(request.config)
        return StrategyValidateResponse(
            status="valid",
            strategy_name=strategy.name,
            lookback=strategy.lookback,
            config=strategy.config.to_dict(),
        )

    async def handle_evaluate(self, request: EvaluateRequest) -> EvaluateResponse:
        """Run one strategy cycle over the posted bars and position."""
        strategy = self._build_strategy(request.config)
        bars = [bar.model_dump() for bar in request.bars]
        try:
            validation.validate_bar_sequence(bars, strict=True)
        except validation.ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        try:
            policy = TradingPolicy(**(request.policy or {}))
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=_errors(exc))

        host = PaperHost.from_bars(
            bars, tick_size=request.tick_size, policy=policy, position=request.position
        )
        host.seek(len(host) - 1, closed=request.bar_closed)
        result = strategy.on_bar(host, host, host)

        return EvaluateResponse(
            strategy_name=strategy.name,
            bar_index=result.bar_index,
            bar_closed=result.bar_closed,
            crossover=result.crossover.value,
            flattened=result.flattened,
            order=result.order.to_dict() if result.order else None,
            result_code=result.result_code,
            position=host.get_position().signed_quantity,
            actions=[HostActionOut(**a.to_dict()) for a in host.actions],
        )
