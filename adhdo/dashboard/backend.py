import random
from typing import List, Optional
from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from adhdo import config
from adhdo.config import FeedMode
from adhdo.feed.controller import Feed
from adhdo.infrastructure.database import DatabaseManager
from adhdo.infrastructure.event_bus import EventBus
from adhdo.infrastructure.task_store import TaskStore
from adhdo.models.filters import TaskFilter
from adhdo.models.schemas import AdvertConfiguration, Bookmark, Category, SearchResult, ToDoItem
from adhdo.search.catalog import SearchCatalog, SearchCategory

app = FastAPI(title="ADHDo API")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DB_PATH = config.DB_PATH
SEARCH_RESULTS_FILE = config.SEARCH_RESULTS_FILE

async def get_store():
    # Requests are independent; nothing outside the request listens for changes
    db = DatabaseManager(DB_PATH)
    try:
        yield TaskStore(db, EventBus())
    finally:
        db.close()

def get_filter(
    filter: str = Query("all", description="all, todo, done, favorites or category"),
    category: Optional[str] = Query(None, description="Category name for filter=category"),
) -> TaskFilter:
    try:
        return TaskFilter.parse(filter, category)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

def _unprocessable(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()])

class NewItem(BaseModel):
    title: str
    subtitle: Optional[str] = None
    favorite: bool = False
    done: bool = False
    category_id: Optional[str] = None

class ItemUpdate(BaseModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    done: Optional[bool] = None
    favorite: Optional[bool] = None
    category_id: Optional[str] = None

class NewCategory(BaseModel):
    name: str

class NewBookmark(BaseModel):
    name: str = ""
    url: str = ""

class FeedElementOut(BaseModel):
    id: str
    kind: str
    item: Optional[ToDoItem] = None
    advert: Optional[AdvertConfiguration] = None

class FeedOut(BaseModel):
    mode: FeedMode
    filter: str
    item_count: int
    elements: List[FeedElementOut]

# --- Items ---

@app.get("/api/items", response_model=List[ToDoItem])
async def list_items(
    task_filter: TaskFilter = Depends(get_filter),
    store: TaskStore = Depends(get_store),
):
    return store.fetch(task_filter)

@app.post("/api/items", response_model=ToDoItem, status_code=201)
async def create_item(body: NewItem, store: TaskStore = Depends(get_store)):
    try:
        return await store.create_item(**body.model_dump())
    except ValidationError as e:
        raise _unprocessable(e)
    except KeyError as e:
        raise HTTPException(status_code=422, detail=str(e))

@app.patch("/api/items/{item_id}", response_model=ToDoItem)
async def update_item(item_id: str, body: ItemUpdate, store: TaskStore = Depends(get_store)):
    if store.get_item(item_id) is None:
        raise HTTPException(status_code=404, detail="Item not found")
    try:
        return await store.update_item(item_id, **body.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise _unprocessable(e)
    except KeyError as e:
        raise HTTPException(status_code=422, detail=str(e))

@app.post("/api/items/{item_id}/done", response_model=ToDoItem)
async def toggle_done(item_id: str, store: TaskStore = Depends(get_store)):
    try:
        return await store.toggle_done(item_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Item not found")

@app.post("/api/items/{item_id}/favorite", response_model=ToDoItem)
async def toggle_favorite(item_id: str, store: TaskStore = Depends(get_store)):
    try:
        return await store.toggle_favorite(item_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Item not found")

@app.delete("/api/items/{item_id}", status_code=204)
async def delete_item(item_id: str, store: TaskStore = Depends(get_store)):
    try:
        await store.delete_item(item_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Item not found")
    return Response(status_code=204)

# --- Categories ---

@app.get("/api/categories", response_model=List[Category])
async def list_categories(store: TaskStore = Depends(get_store)):
    return store.list_categories()

@app.post("/api/categories", response_model=Category, status_code=201)
async def create_category(body: NewCategory, store: TaskStore = Depends(get_store)):
    try:
        return await store.create_category(body.name)
    except ValidationError as e:
        raise _unprocessable(e)

@app.patch("/api/categories/{category_id}", response_model=Category)
async def rename_category(category_id: str, body: NewCategory, store: TaskStore = Depends(get_store)):
    try:
        return await store.rename_category(category_id, body.name)
    except ValidationError as e:
        raise _unprocessable(e)
    except KeyError:
        raise HTTPException(status_code=404, detail="Category not found")

@app.delete("/api/categories/{category_id}", status_code=204)
async def delete_category(category_id: str, store: TaskStore = Depends(get_store)):
    try:
        await store.delete_category(category_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Category not found")
    return Response(status_code=204)

# --- Bookmarks ---

@app.get("/api/bookmarks", response_model=List[Bookmark])
async def list_bookmarks(store: TaskStore = Depends(get_store)):
    return store.list_bookmarks()

@app.post("/api/bookmarks", response_model=Bookmark, status_code=201)
async def create_bookmark(body: NewBookmark, store: TaskStore = Depends(get_store)):
    try:
        return await store.create_bookmark(body.name, body.url)
    except ValidationError as e:
        raise _unprocessable(e)

@app.delete("/api/bookmarks/{bookmark_id}", status_code=204)
async def delete_bookmark(bookmark_id: str, store: TaskStore = Depends(get_store)):
    try:
        await store.delete_bookmark(bookmark_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return Response(status_code=204)

# --- Feed ---

@app.get("/api/feed", response_model=FeedOut)
async def get_feed(
    mode: FeedMode = config.FEED_MODE,
    seed: Optional[int] = None,
    task_filter: TaskFilter = Depends(get_filter),
    store: TaskStore = Depends(get_store),
):
    rng = random.Random(seed) if seed is not None else None
    with Feed(
        store,
        ad_probability=config.AD_PROBABILITY,
        visibility_probability=config.VISIBILITY_PROBABILITY,
        shuffle=config.SHUFFLE_FEED,
        task_filter=task_filter,
        event_bus=store.event_bus,
        rng=rng,
    ) as feed:
        elements = feed.current(mph=mode == FeedMode.MPH)
        return FeedOut(
            mode=mode,
            filter=task_filter.title,
            item_count=len(feed.items),
            elements=[FeedElementOut(**element.to_dict()) for element in elements],
        )

# --- Search ---

@app.get("/api/search", response_model=List[SearchResult])
async def search(
    q: str = "",
    category: SearchCategory = SearchCategory.ALL,
    seed: Optional[int] = None,
):
    # Stateless: every request gets a freshly shuffled catalog
    rng = random.Random(seed) if seed is not None else None
    catalog = SearchCatalog.from_file(SEARCH_RESULTS_FILE, rng=rng)
    catalog.select_category(category)
    return catalog.search(q)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
