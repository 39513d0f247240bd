import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shortener.core.config import ADMIN_PASSWORD, ADMIN_USERNAME, LOG_LEVEL
from shortener.core.database import user_store
from shortener.core.errors import ShortenerError
from shortener.api import auth, links
from shortener.services.scheduler import shutdown_scheduler, start_scheduler

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="URL Shortener", version="1.0")


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.on_event("startup")
def on_startup():
    """
    Миграция users.json и запуск планировщика до приёма запросов.
    """
    user_store.migrate()
    user_store.ensure_admin(ADMIN_USERNAME, ADMIN_PASSWORD)
    start_scheduler()


@app.on_event("shutdown")
def on_shutdown():
    shutdown_scheduler()


app.include_router(auth.router, prefix="/api", tags=["auth"])
# links.router последним: в нём маршрут /{short_code}
app.include_router(links.router, tags=["links"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("shortener.app:app", host="0.0.0.0", port=8000)
