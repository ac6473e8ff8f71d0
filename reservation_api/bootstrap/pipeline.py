"""Request pipeline.

The pipeline is an ordered list of named stages in declared order: the order
in which a stage gets its turn to produce the response. ``validate_stage_order``
enforces the ordering rules when the pipeline is built:

- CORS is the first stage and the error normalizer the last one;
- the pre-flight stage comes before body parsers and every route stage;
- body parsers come before every route stage;
- the catch-all sits right before the error normalizer, so after every real route.

Declared order and wrap order differ for one stage. Every stage except the
error normalizer is a layer around the ones declared after it, so its declared
position is also its wrap position. The error normalizer is declared last,
meaning it answers only after every other stage has had its turn, but it has
to see what those stages raise, so it is installed as the layer directly
inside CORS:

    declared: cors, preflight, body_parser, routes..., not_found, error_normalizer
    wrapped:  cors > error_normalizer > preflight > body_parser > router

``Pipeline.wrap_order`` gives the second form and ``check_wrap_order`` verifies
it, so error responses carry access-control headers and nothing but CORS runs
outside the error stage.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from fastapi import FastAPI
from fastapi.middleware import Middleware

from reservation_api.core.exceptions import PipelineOrderError


class StageKind(str, Enum):
    CORS = "cors"
    PREFLIGHT = "preflight"
    BODY_PARSER = "body_parser"
    ROUTES = "routes"
    DIAGNOSTICS = "diagnostics"
    NOT_FOUND = "not_found"
    ERROR = "error"


MIDDLEWARE_KINDS = frozenset({StageKind.CORS, StageKind.PREFLIGHT, StageKind.BODY_PARSER, StageKind.ERROR})
ROUTE_KINDS = frozenset({StageKind.ROUTES, StageKind.DIAGNOSTICS, StageKind.NOT_FOUND})
SINGLETON_KINDS = (StageKind.CORS, StageKind.PREFLIGHT, StageKind.NOT_FOUND, StageKind.ERROR)


@dataclass(frozen=True)
class Stage:
    """One pipeline stage.

    ``target`` is a ``Middleware`` for middleware kinds and an ``APIRouter``
    for route kinds; ``prefix`` only applies to routers.
    The list position is the declared position; see the module docstring for
    how the error stage maps to its wrap position.
    """

    name: str
    kind: StageKind
    target: Any
    prefix: str = ""

    @property
    def is_middleware(self) -> bool:
        return self.kind in MIDDLEWARE_KINDS


def validate_stage_order(stages: Iterable[Stage]) -> None:
    stages = list(stages)
    if not stages:
        raise PipelineOrderError("pipeline has no stages")

    names = [stage.name for stage in stages]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise PipelineOrderError(f"duplicate stage names: {', '.join(duplicates)}")

    kinds = [stage.kind for stage in stages]
    for kind in SINGLETON_KINDS:
        if kinds.count(kind) != 1:
            raise PipelineOrderError(f"pipeline needs exactly one '{kind.value}' stage, found {kinds.count(kind)}")

    if kinds[0] is not StageKind.CORS:
        raise PipelineOrderError(f"first stage must be CORS, got '{stages[0].name}'")
    if kinds[-1] is not StageKind.ERROR:
        raise PipelineOrderError(f"last stage must be the error normalizer, got '{stages[-1].name}'")
    if kinds[-2] is not StageKind.NOT_FOUND:
        raise PipelineOrderError("catch-all stage must come right before the error normalizer")

    preflight_at = kinds.index(StageKind.PREFLIGHT)
    body_parsers = [i for i, kind in enumerate(kinds) if kind is StageKind.BODY_PARSER]
    routes = [i for i, kind in enumerate(kinds) if kind in ROUTE_KINDS]

    if any(i < preflight_at for i in body_parsers + routes):
        raise PipelineOrderError("pre-flight stage must come before body parsers and routes")
    if body_parsers and routes and max(body_parsers) > min(routes):
        raise PipelineOrderError("body parsers must come before every route stage")


def check_wrap_order(kinds: list[StageKind]) -> None:
    """Check middleware kinds as installed, outermost first."""
    if kinds[:2] != [StageKind.CORS, StageKind.ERROR]:
        raise PipelineOrderError("error stage must be installed directly inside CORS")
    if StageKind.CORS in kinds[1:] or StageKind.ERROR in kinds[2:]:
        raise PipelineOrderError("CORS and error stages must each be installed once")


class Pipeline:
    def __init__(self, stages: Iterable[Stage]):
        stages = tuple(stages)
        validate_stage_order(stages)
        self.stages = stages
        check_wrap_order([stage.kind for stage in self._wrapped()])

    @property
    def names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def _wrapped(self) -> list[Stage]:
        cors, *inner = [stage for stage in self.stages if stage.is_middleware]
        error = inner.pop()
        return [cors, error, *inner]

    @property
    def wrap_order(self) -> list[str]:
        """Middleware stage names as installed, outermost first."""
        return [stage.name for stage in self._wrapped()]

    def middleware(self) -> list[Middleware]:
        """Middleware list for ``FastAPI(middleware=...)``, outermost first."""
        return [stage.target for stage in self._wrapped()]

    def mount(self, app: FastAPI) -> None:
        """Include every router stage in pipeline order."""
        for stage in self.stages:
            if not stage.is_middleware:
                app.include_router(stage.target, prefix=stage.prefix)
