"""
Pipeline ordering tests
"""

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware

from reservation_api.bootstrap.pipeline import (
    Pipeline,
    Stage,
    StageKind,
    check_wrap_order,
    validate_stage_order,
)
from reservation_api.core.exceptions import PipelineOrderError, StartupError


class Noop(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        return await call_next(request)


def middleware_stage(name, kind):
    return Stage(name, kind, Middleware(Noop))


def router_stage(name, kind, prefix=""):
    return Stage(name, kind, APIRouter(), prefix=prefix)


def valid_stages():
    return [
        middleware_stage("cors", StageKind.CORS),
        middleware_stage("preflight", StageKind.PREFLIGHT),
        middleware_stage("body_parser", StageKind.BODY_PARSER),
        router_stage("routes:reservations", StageKind.ROUTES, "/api/reservations"),
        router_stage("routes:tables", StageKind.ROUTES, "/api/tables"),
        router_stage("diagnostics", StageKind.DIAGNOSTICS),
        router_stage("not_found", StageKind.NOT_FOUND),
        middleware_stage("error_normalizer", StageKind.ERROR),
    ]


def swap(stages, a, b):
    stages = list(stages)
    stages[a], stages[b] = stages[b], stages[a]
    return stages


class TestValidateStageOrder:

    def test_valid_order(self):
        validate_stage_order(valid_stages())

    def test_empty(self):
        with pytest.raises(PipelineOrderError, match="no stages"):
            validate_stage_order([])

    def test_cors_not_first(self):
        with pytest.raises(PipelineOrderError, match="first stage must be CORS"):
            validate_stage_order(swap(valid_stages(), 0, 1))

    def test_error_not_last(self):
        with pytest.raises(PipelineOrderError, match="last stage"):
            validate_stage_order(swap(valid_stages(), -1, -2))

    def test_route_after_catch_all(self):
        stages = valid_stages()
        stages.insert(-1, router_stage("routes:late", StageKind.ROUTES))

        with pytest.raises(PipelineOrderError, match="catch-all"):
            validate_stage_order(stages)

    def test_body_parser_before_preflight(self):
        with pytest.raises(PipelineOrderError, match="pre-flight"):
            validate_stage_order(swap(valid_stages(), 1, 2))

    def test_route_before_preflight(self):
        stages = valid_stages()
        stages.insert(1, router_stage("routes:early", StageKind.ROUTES))

        with pytest.raises(PipelineOrderError, match="pre-flight"):
            validate_stage_order(stages)

    def test_body_parser_after_routes(self):
        with pytest.raises(PipelineOrderError, match="body parsers"):
            validate_stage_order(swap(valid_stages(), 2, 3))

    def test_missing_preflight(self):
        stages = [stage for stage in valid_stages() if stage.kind is not StageKind.PREFLIGHT]

        with pytest.raises(PipelineOrderError, match="exactly one 'preflight'"):
            validate_stage_order(stages)

    def test_two_cors_stages(self):
        stages = valid_stages()
        stages.insert(1, middleware_stage("cors:again", StageKind.CORS))

        with pytest.raises(PipelineOrderError, match="exactly one 'cors'"):
            validate_stage_order(stages)

    def test_duplicate_names(self):
        stages = valid_stages()
        stages[4] = router_stage("routes:reservations", StageKind.ROUTES)

        with pytest.raises(PipelineOrderError, match="duplicate"):
            validate_stage_order(stages)

    def test_order_error_is_a_startup_error(self):
        assert issubclass(PipelineOrderError, StartupError)


class TestPipeline:

    def test_rejects_invalid_order_on_construction(self):
        with pytest.raises(PipelineOrderError):
            Pipeline(swap(valid_stages(), 0, 1))

    def test_names_in_order(self):
        assert Pipeline(valid_stages()).names[0] == "cors"
        assert Pipeline(valid_stages()).names[-1] == "error_normalizer"

    def test_error_stage_installed_inside_cors(self):
        stages = valid_stages()
        pipeline = Pipeline(stages)

        middleware = pipeline.middleware()

        assert middleware == [stages[0].target, stages[-1].target, stages[1].target, stages[2].target]

    def test_wrap_order_differs_from_declared_order_only_for_error_stage(self):
        pipeline = Pipeline(valid_stages())

        assert [name for name in pipeline.names if name in pipeline.wrap_order] == [
            "cors", "preflight", "body_parser", "error_normalizer",
        ]
        assert pipeline.wrap_order == ["cors", "error_normalizer", "preflight", "body_parser"]

    def test_wrap_order_check_rejects_error_stage_outside_cors(self):
        with pytest.raises(PipelineOrderError, match="directly inside CORS"):
            check_wrap_order([StageKind.ERROR, StageKind.CORS, StageKind.PREFLIGHT])

    def test_wrap_order_check_rejects_error_stage_deeper_in(self):
        with pytest.raises(PipelineOrderError, match="directly inside CORS"):
            check_wrap_order([StageKind.CORS, StageKind.PREFLIGHT, StageKind.ERROR])

    def test_mount_preserves_router_order(self):
        calls = []

        class RecordingApp(FastAPI):
            def include_router(self, router, prefix="", **kwargs):
                calls.append(prefix)

        Pipeline(valid_stages()).mount(RecordingApp())

        assert calls == ["/api/reservations", "/api/tables", "", ""]


def test_gateway_pipeline_is_valid(make_bootstrap):
    pipeline = make_bootstrap().build_pipeline()

    assert pipeline.names[:3] == ["cors", "preflight", "body_parser"]
    assert pipeline.names[3:6] == ["routes:reservations", "routes:tables", "routes:notifications"]
    assert pipeline.names[-2:] == ["not_found", "error_normalizer"]
    assert pipeline.wrap_order == ["cors", "error_normalizer", "preflight", "body_parser"]
