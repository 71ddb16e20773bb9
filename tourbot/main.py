import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from tourbot.core.assistant import get_assistant
from tourbot.core.database import engine
from tourbot.api.router import api_router


# Load the vocabulary in the background and close the engine once everything is done
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Requests arriving before the first load simply see an empty vocabulary
    refresh_task = asyncio.create_task(get_assistant().vocabulary.refresh())

    yield

    if not refresh_task.done():
        refresh_task.cancel()
    await engine.dispose()


app = FastAPI(title="Tour Manager Assistant API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Tour Manager Assistant API"}


@app.get("/health")
async def health():
    return {"ok": True}
