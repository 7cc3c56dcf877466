import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import API_HOST, API_PORT, METRICS_ENABLED, VM_TEMPLATE_PATH
from core.descriptor import DescriptorGenerator
from core.vm_controller import VMController
from core.metrics import (
    REQUEST_COUNT,
    REQUEST_LATENCY,
    init_static_metrics,
    start_background_collectors,
)
from core.logger import log_event
from schemas.vm_schema import VMCreateSchema


@asynccontextmanager
async def lifespan(app: FastAPI):
    if METRICS_ENABLED:
        init_static_metrics()
        start_background_collectors()
        log_event("[app] Metrics enabled and collectors started")
    yield


app = FastAPI(
    title="padmini-vm-service",
    description=(
        "Provision libvirt virtual machines.\n\n"
        "A single request creates the disk images with qemu-img, renders the "
        "domain XML from a template, then defines and starts the domain."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# parsed once; a broken template stops the service here
descriptor_generator = DescriptorGenerator(VM_TEMPLATE_PATH)
vm_controller = VMController(descriptor_generator)


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        message = "Invalid JSON input"
    else:
        fields = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}"
            for err in errors
        )
        message = f"Missing/invalid request fields: {fields}"
    log_event(f"[api] Rejected {request.method} {request.url.path}: {message}")
    return _error_response(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_event(f"[api] Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error_response(500, f"Internal error: {exc}")


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    endpoint = request.url.path
    method = request.method

    if not METRICS_ENABLED or endpoint == "/metrics":
        return await call_next(request)

    start_time = time.time()
    try:
        response = await call_next(request)
        return response
    finally:
        duration = time.time() - start_time
        REQUEST_COUNT.labels(method=method, endpoint=endpoint).inc()
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(duration)


@app.get("/", tags=["System"])
def root():
    return {
        "message": "padmini-vm-service is running",
        "version": app.version,
    }


@app.post("/api/v1/vm", tags=["VM Management"])
def create_vm(payload: VMCreateSchema):
    vm_info = vm_controller.create_vm(payload)
    log_event(f"[api] VM '{vm_info['name']}' created (uuid={vm_info['uuid']})")
    return {"status": "success", "message": "VM created and started successfully"}


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    if not METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    log_event(f"[app] padmini-vm-service listening on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT)
