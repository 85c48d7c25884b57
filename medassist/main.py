# medassist/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from medassist.routers import admin, assistant
from medassist.db.mongo import client, verify_mongodb_connection
from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.utils.responses import format_error_response, format_validation_errors


app = FastAPI(
    title="Medical Assistant",
    version="0.1.0",
    description="Rule-based medical assistant for doctor and specialization recommendations",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)


# Startup/shutdown
@app.on_event("startup")
async def startup():
    await verify_mongodb_connection()

@app.on_event("shutdown")
async def shutdown_db():
    client.close()

# Health check
@app.get("/", tags=["root"], summary="Health check")
async def root():
    return {"status": "ok", "service": "Medical Assistant"}

# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error_response(exc, status_code=exc.status_code, detail=exc.detail),
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=format_error_response(exc, status_code=422, detail=format_validation_errors(exc.errors())),
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=format_error_response(exc, detail="Internal server error"),
    )

# Routes
app.include_router(assistant.router, prefix="/ai")
app.include_router(admin.router,     prefix="/admin")
