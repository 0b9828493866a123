from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conjuga.database import engine, Base
from conjuga.routers import drill, progress, settings, verbs

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Conjuga Verb Drill API", version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(drill.router)
app.include_router(progress.router)
app.include_router(settings.router)
app.include_router(verbs.router)


@app.get("/")
def root():
    return {"app": "conjuga", "version": VERSION}
