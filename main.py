import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import CampgroundStore, create_store
from errors import DEFAULT_MESSAGE, AppError, catch_async
from middleware import HeadMiddleware, MethodOverrideMiddleware
from schemas import CampgroundIn, ReviewIn
from validation import validate_campground, validate_review

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A store injected before startup belongs to whoever injected it
    owned = getattr(app.state, "store", None) is None
    if owned:
        app.state.store = create_store()
        await app.state.store.open()
    try:
        yield
    finally:
        if owned:
            await app.state.store.close()
            app.state.store = None


# App setup
app = FastAPI(title="YelpCamp", lifespan=lifespan)
app.add_middleware(MethodOverrideMiddleware)
app.add_middleware(HeadMiddleware)


# Dependencies

def get_store(request: Request) -> CampgroundStore:
    return request.app.state.store


# Helpers

def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


def render(request: Request, name: str, status_code: int = 200, **context):
    return templates.TemplateResponse(request, name, context, status_code=status_code)


async def find_campground(store: CampgroundStore, campground_id: str, populated: bool = False):
    if populated:
        campground = await store.get_populated_campground(campground_id)
    else:
        campground = await store.get_campground(campground_id)
    if campground is None:
        raise AppError("Campground not found", 404)
    return campground


# Routes
@app.get("/")
def home(request: Request):
    return render(request, "home.html")


# Campgrounds
@app.get("/campgrounds")
@catch_async
async def list_campgrounds(request: Request, store: CampgroundStore = Depends(get_store)):
    campgrounds = await store.list_campgrounds()
    return render(request, "campgrounds/index.html", campgrounds=campgrounds)


@app.get("/campgrounds/new")
def new_campground_form(request: Request):
    return render(request, "campgrounds/new.html")


@app.post("/campgrounds")
@catch_async
async def create_campground(
    payload: CampgroundIn = Depends(validate_campground),
    store: CampgroundStore = Depends(get_store),
):
    campground = await store.create_campground(payload)
    return redirect(f"/campgrounds/{campground.id}")


@app.get("/campgrounds/{campground_id}")
@catch_async
async def show_campground(
    request: Request, campground_id: str, store: CampgroundStore = Depends(get_store)
):
    campground = await find_campground(store, campground_id, populated=True)
    return render(request, "campgrounds/show.html", campground=campground)


@app.get("/campgrounds/{campground_id}/edit")
@catch_async
async def edit_campground_form(
    request: Request, campground_id: str, store: CampgroundStore = Depends(get_store)
):
    campground = await find_campground(store, campground_id)
    return render(request, "campgrounds/edit.html", campground=campground)


@app.put("/campgrounds/{campground_id}")
@catch_async
async def update_campground(
    campground_id: str,
    payload: CampgroundIn = Depends(validate_campground),
    store: CampgroundStore = Depends(get_store),
):
    campground = await store.update_campground(campground_id, payload)
    if campground is None:
        raise AppError("Campground not found", 404)
    return redirect(f"/campgrounds/{campground.id}")


@app.delete("/campgrounds/{campground_id}")
@catch_async
async def delete_campground(campground_id: str, store: CampgroundStore = Depends(get_store)):
    if await store.delete_campground(campground_id) is None:
        raise AppError("Campground not found", 404)
    return redirect("/campgrounds")


# Reviews
@app.post("/campgrounds/{campground_id}/reviews")
@catch_async
async def create_review(
    campground_id: str,
    payload: ReviewIn = Depends(validate_review),
    store: CampgroundStore = Depends(get_store),
):
    if await store.create_review(campground_id, payload) is None:
        raise AppError("Campground not found", 404)
    return redirect(f"/campgrounds/{campground_id}")


@app.delete("/campgrounds/{campground_id}/reviews/{review_id}")
@catch_async
async def delete_review(
    campground_id: str, review_id: str, store: CampgroundStore = Depends(get_store)
):
    if not await store.delete_review(campground_id, review_id):
        raise AppError("Review not found", 404)
    return redirect(f"/campgrounds/{campground_id}")


# Error presenter
@app.exception_handler(AppError)
async def present_error(request: Request, exc: AppError):
    message = exc.message or DEFAULT_MESSAGE
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {message}")
    return render(request, "error.html", status_code=exc.status_code, status=exc.status_code, message=message)


@app.exception_handler(StarletteHTTPException)
async def present_http_error(request: Request, exc: StarletteHTTPException):
    # unmatched path or method
    if exc.status_code in (404, 405):
        return await present_error(request, AppError("Page Not Found", 404))
    return await present_error(request, AppError(str(exc.detail), exc.status_code))


@app.exception_handler(Exception)
async def present_unhandled_error(request: Request, exc: Exception):
    error = AppError(status_code=500)
    error.__cause__ = exc
    return await present_error(request, error)


def run():
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
