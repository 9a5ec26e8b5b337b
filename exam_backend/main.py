from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from exam_backend.config import settings
from exam_backend.database import engine, Base
from exam_backend.routes import auth, exams, admin, notifications
# Import all models to ensure tables are created on startup
from exam_backend.models import User, Participant, Attempt  # noqa: F401

app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG
)

# CORS configuration - allow frontend URL from environment or default to all origins
allowed_origins = [settings.FRONTEND_URL] if settings.FRONTEND_URL != "*" else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are a 400 with a readable message"""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    detail = "; ".join(messages) or "Invalid request"
    print(f"⚠️ Invalid request to {request.url.path}: {detail}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


@app.on_event("startup")
async def startup_event():
    print("🔵 Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created/verified")


app.include_router(auth.router)
app.include_router(exams.router)
app.include_router(admin.router)
app.include_router(notifications.router)


@app.get("/")
async def root():
    return {
        "message": "Exam Administration API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "exam_backend.main:app",
        host="127.0.0.1",
        port=8001,
        reload=False
    )
