import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.middleware import RequestLoggingMiddleware, install_exception_handlers
from app.rate_limit import limiter
from app.routers import account, articles, auth, categories, files, users
from app.config import settings

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    await limiter.connect()
    yield
    # Shutdown
    await limiter.disconnect()

app = FastAPI(
    title="Articles API",
    description="Articles, users, files and categories with JWT auth and rate limiting",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(account.router)
app.include_router(files.router)
app.include_router(categories.router)
app.include_router(articles.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
